"""
Lead model — a schema-less CRM record.

A lead is an identifier plus an ordered mapping of field name → primitive value
(str, int/float, bool, datetime). The field set is discovered at runtime from
the imported rows; nothing beyond `id` is fixed.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Tuple, Union

from leadboard.config import ID_FIELD
from leadboard.values import stringify, to_jsonable

LeadId = Union[int, str]


@dataclass
class Lead:
    id: LeadId
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        """Identifier compared as text, so 7 and '7' name the same lead."""
        return stringify(self.id)

    def get(self, name: str, default=None):
        if name == ID_FIELD:
            return self.id
        return self.fields.get(name, default)

    def values(self) -> Iterator[Any]:
        """All values, identifier first, in field order."""
        yield self.id
        yield from self.fields.values()

    def items(self) -> Iterator[Tuple[str, Any]]:
        yield ID_FIELD, self.id
        yield from self.fields.items()

    def to_dict(self) -> Dict[str, Any]:
        data = {ID_FIELD: self.id}
        for name, value in self.fields.items():
            data[name] = to_jsonable(value)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Lead':
        fields = {k: v for k, v in data.items() if k != ID_FIELD}
        return cls(id=data.get(ID_FIELD), fields=fields)
