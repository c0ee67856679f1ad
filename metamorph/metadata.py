# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Searchable metadata record

The Metadata record is what collaborators see: the text fields a user
edits before saving, plus the star rating.

Copyright 2025 DNAi inc.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional, Union

from metamorph.exceptions import InvalidTagError
from metamorph.tag_values import star_count


@dataclass(eq=False)
class Metadata:
    """
    Editable image metadata.

    All fields are optional. ``rating`` is a star-glyph string such as
    "★★★★" (the form the decoder produces); a plain star count is
    accepted as well. ``user_comment`` carries the keyword list.
    """
    title: Optional[str] = None
    subject: Optional[str] = None
    rating: Optional[Union[str, int]] = None
    description: Optional[str] = None
    artist: Optional[str] = None
    copyright: Optional[str] = None
    software: Optional[str] = None
    date_time: Optional[str] = None
    user_comment: Optional[str] = None

    @property
    def stars(self) -> int:
        """Star count in [1, 5] used when writing Rating."""
        return star_count(self.rating)

    @property
    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a plain dictionary, omitting unset and empty fields.

        Returns:
            Dictionary of field name to value
        """
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) not in (None, '')
        }

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'Metadata':
        """
        Build a record from a dictionary of field values.

        Args:
            values: Mapping of field name to value

        Returns:
            Metadata record

        Raises:
            InvalidTagError: If a key is not a Metadata field
        """
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise InvalidTagError(f"Unknown metadata fields: {', '.join(sorted(unknown))}")
        return cls(**values)

    def updated(self, **changes: Any) -> 'Metadata':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Metadata):
            return self.to_dict() == other.to_dict()
        if isinstance(other, dict):
            return self.to_dict() == other
        return NotImplemented
