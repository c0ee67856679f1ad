# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Interfaces of the services around the codec

The title renderer, the AI suggestion client and the file sink live
outside this package. They are described here as protocols so an edit
session can be wired to real services or to test doubles.

Copyright 2025 DNAi inc.
"""

import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import List, Optional, Protocol

from metamorph.metadata import Metadata

_FORBIDDEN_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')


class TitleRenderer(Protocol):
    def render(self, image: bytes, mime_type: str, title: Optional[str]) -> bytes:
        """
        Re-encode the image as JPEG, drawing ``title`` onto it unless it
        is None.
        """
        ...


class SuggestionClient(Protocol):
    def suggest(self, image: bytes, mime_type: str) -> 'Suggestion':
        """Ask the suggestion service for metadata describing the image."""
        ...


class ImageSink(Protocol):
    def save(self, data: bytes, filename: str) -> None:
        ...


@dataclass
class Suggestion:
    """Metadata proposed by the suggestion service."""
    title: str = ''
    subject: str = ''
    description: str = ''
    rating: str = ''
    tags: List[str] = field(default_factory=list)

    def apply_to(self, metadata: Metadata) -> Metadata:
        """
        Return ``metadata`` with the suggested fields filled in.

        The tag list becomes the keyword field, joined with ", ".
        """
        return metadata.updated(
            title=self.title,
            subject=self.subject,
            description=self.description,
            rating=self.rating,
            user_comment=', '.join(self.tags),
        )


def download_filename(metadata: Metadata, original_name: str) -> str:
    """
    Name the saved file after the title.

    Falls back to the original file name without its extension. Characters
    Windows does not allow in file names are removed; spaces are kept.

    Args:
        metadata: Record being saved
        original_name: Name of the uploaded file

    Returns:
        File name ending in ".jpg"
    """
    title = (metadata.title or '').strip()
    base = title or PurePath(original_name).stem
    return _FORBIDDEN_FILENAME_CHARS.sub('', base) + '.jpg'
