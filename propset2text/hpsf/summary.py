"""
Typed views over the two standard property sets.

SummaryInformation and DocumentSummaryInformation wrap a parsed PropertySet
and expose its well-known properties as plain Python values (None when a
property is absent or undecodable).
"""

import datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional

from propset2text.exceptions import NotAPropertySetStreamError, PropertyDecodeError
from propset2text.hpsf import names
from propset2text.hpsf.property_set import PropertySet
from propset2text.hpsf.section import Section
from propset2text.hpsf.thumbnail import Thumbnail
from propset2text.hpsf.variant import FileTime, PropertyValue, TypedValue


class _PropertySetView:
    _fmtid = None
    _kind = ""

    def __init__(self, property_set: PropertySet):
        first = property_set.first_section
        if first is None or first.fmtid != self._fmtid:
            raise NotAPropertySetStreamError(f"Property set is not a {self._kind} stream")
        self.property_set = property_set

    @property
    def section(self) -> Section:
        return self.property_set.first_section

    @property
    def codepage(self) -> int:
        return self.section.codepage

    def get_property(self, property_id: int) -> Optional[PropertyValue]:
        return self.section.get(property_id)

    def _value(self, property_id: int) -> Any:
        return self.section.get_value(property_id)

    def _timestamp(self, property_id: int) -> Optional[datetime.datetime]:
        value = self._value(property_id)
        return value.to_datetime() if isinstance(value, FileTime) else None


class SummaryInformation(_PropertySetView):
    _fmtid = names.FMTID_SUMMARY_INFORMATION
    _kind = "SummaryInformation"

    @property
    def title(self) -> Optional[str]:
        return self._value(names.PID_TITLE)

    @property
    def subject(self) -> Optional[str]:
        return self._value(names.PID_SUBJECT)

    @property
    def author(self) -> Optional[str]:
        return self._value(names.PID_AUTHOR)

    @property
    def keywords(self) -> Optional[str]:
        return self._value(names.PID_KEYWORDS)

    @property
    def comments(self) -> Optional[str]:
        return self._value(names.PID_COMMENTS)

    @property
    def template(self) -> Optional[str]:
        return self._value(names.PID_TEMPLATE)

    @property
    def last_author(self) -> Optional[str]:
        return self._value(names.PID_LASTAUTHOR)

    @property
    def rev_number(self) -> Optional[str]:
        return self._value(names.PID_REVNUMBER)

    @property
    def edit_time(self) -> Optional[datetime.timedelta]:
        value = self._value(names.PID_EDITTIME)
        return value.to_timedelta() if isinstance(value, FileTime) else None

    @property
    def last_printed(self) -> Optional[datetime.datetime]:
        return self._timestamp(names.PID_LASTPRINTED)

    @property
    def create_time(self) -> Optional[datetime.datetime]:
        return self._timestamp(names.PID_CREATE_DTM)

    @property
    def last_save_time(self) -> Optional[datetime.datetime]:
        return self._timestamp(names.PID_LASTSAVE_DTM)

    @property
    def page_count(self) -> Optional[int]:
        return self._value(names.PID_PAGECOUNT)

    @property
    def word_count(self) -> Optional[int]:
        return self._value(names.PID_WORDCOUNT)

    @property
    def char_count(self) -> Optional[int]:
        return self._value(names.PID_CHARCOUNT)

    @property
    def app_name(self) -> Optional[str]:
        return self._value(names.PID_APPNAME)

    @property
    def security(self) -> Optional[int]:
        return self._value(names.PID_SECURITY)

    def get_thumbnail(self) -> Optional[TypedValue]:
        """The raw PID_THUMBNAIL value, None when absent."""
        value = self.get_property(names.PID_THUMBNAIL)
        return value if isinstance(value, TypedValue) else None

    @property
    def thumbnail(self) -> Optional[Thumbnail]:
        """PID_THUMBNAIL as a Thumbnail; None when absent or not clipboard data."""
        value = self.get_thumbnail()
        if value is None:
            return None
        try:
            return Thumbnail(value)
        except PropertyDecodeError:
            return None


class DocumentSummaryInformation(_PropertySetView):
    _fmtid = names.FMTID_DOC_SUMMARY_INFORMATION
    _kind = "DocumentSummaryInformation"

    @property
    def category(self) -> Optional[str]:
        return self._value(names.PID_CATEGORY)

    @property
    def presentation_format(self) -> Optional[str]:
        return self._value(names.PID_PRESFORMAT)

    @property
    def byte_count(self) -> Optional[int]:
        return self._value(names.PID_BYTECOUNT)

    @property
    def line_count(self) -> Optional[int]:
        return self._value(names.PID_LINECOUNT)

    @property
    def par_count(self) -> Optional[int]:
        return self._value(names.PID_PARCOUNT)

    @property
    def slide_count(self) -> Optional[int]:
        return self._value(names.PID_SLIDECOUNT)

    @property
    def note_count(self) -> Optional[int]:
        return self._value(names.PID_NOTECOUNT)

    @property
    def hidden_count(self) -> Optional[int]:
        return self._value(names.PID_HIDDENCOUNT)

    @property
    def mmclip_count(self) -> Optional[int]:
        return self._value(names.PID_MMCLIPCOUNT)

    @property
    def scale(self) -> Optional[bool]:
        return self._value(names.PID_SCALE)

    @property
    def manager(self) -> Optional[str]:
        return self._value(names.PID_MANAGER)

    @property
    def company(self) -> Optional[str]:
        return self._value(names.PID_COMPANY)

    @property
    def links_dirty(self) -> Optional[bool]:
        return self._value(names.PID_LINKSDIRTY)

    @property
    def custom_section(self) -> Optional[Section]:
        return self.property_set.user_defined_section

    def custom_property_items(self) -> list[tuple[str, PropertyValue]]:
        """
        User-defined properties as (name, value) pairs.

        Properties named in the dictionary come first, in dictionary order;
        properties without a dictionary entry follow in table order under
        their numeric id.
        """
        section = self.custom_section
        if section is None:
            return []

        items = []
        seen = set()
        if section.dictionary is not None:
            for property_id in section.dictionary:
                if property_id in names.RESERVED_PROPERTY_IDS or property_id not in section:
                    continue
                items.append((section.dictionary.name_for(property_id), section.get(property_id)))
                seen.add(property_id)
        for property_id, value in section.properties.items():
            if property_id in seen or property_id in names.RESERVED_PROPERTY_IDS:
                continue
            items.append((str(property_id), value))
        return items

    @property
    def custom_properties(self) -> Mapping[str, Any]:
        """User-defined properties as name -> plain value."""
        result = {}
        for name, value in self.custom_property_items():
            result.setdefault(name, value.value if isinstance(value, TypedValue) else None)
        return MappingProxyType(result)
