# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Edit session

Holds one image being edited and drives the save workflow. The image
is re-encoded to JPEG (optionally with the title drawn on it) before the
metadata is written and the result handed to a sink.

Copyright 2025 DNAi inc.
"""

import logging
from dataclasses import fields
from typing import Optional

from metamorph.collaborators import (
    ImageSink,
    SuggestionClient,
    TitleRenderer,
    download_filename,
)
from metamorph.core import CodecStatus, EncodeResult, MetadataCodec, create_codec
from metamorph.exceptions import InvalidTagError, MetaMorphError
from metamorph.jpeg_modifier import is_jpeg
from metamorph.metadata import Metadata

logger = logging.getLogger(__name__)

_METADATA_FIELDS = frozenset(f.name for f in fields(Metadata))


class EditSession:
    """
    State of one image being edited.

    Attributes:
        image: Uploaded file bytes, or None before load()
        filename: Uploaded file name
        mime_type: MIME type reported by the upload
        metadata: Current metadata record
        add_visual_title: Whether save() burns the title into the pixels
    """

    def __init__(self, codec: Optional[MetadataCodec] = None):
        self.codec = codec or create_codec()
        self.image: Optional[bytes] = None
        self.filename: Optional[str] = None
        self.mime_type: Optional[str] = None
        self.metadata = Metadata()
        self.add_visual_title = False

    @property
    def loaded(self) -> bool:
        return self.image is not None

    def load(self, image: bytes, filename: str, mime_type: str) -> Metadata:
        """
        Start editing an uploaded image.

        Metadata is only read from JPEG files; anything else starts with
        an empty record for manual entry.

        Args:
            image: File bytes
            filename: Uploaded file name
            mime_type: MIME type of the upload

        Returns:
            The initial metadata record
        """
        self.image = image
        self.filename = filename
        self.mime_type = mime_type
        if mime_type in ('image/jpeg', 'image/jpg'):
            self.metadata = self.codec.decode(image).metadata
        else:
            self.metadata = Metadata()
        return self.metadata

    def update(self, field_name: str, value: Optional[str]) -> Metadata:
        """Change one metadata field."""
        if field_name not in _METADATA_FIELDS:
            raise InvalidTagError(f"Unknown metadata field: {field_name}")
        self.metadata = self.metadata.updated(**{field_name: value})
        return self.metadata

    def apply_suggestions(self, client: SuggestionClient) -> Metadata:
        """
        Fill title, subject, description, rating and keywords from the
        suggestion service. Errors from the client propagate unchanged.
        """
        if self.image is None or not self.mime_type:
            raise MetaMorphError("No image loaded")
        suggestion = client.suggest(self.image, self.mime_type)
        self.metadata = suggestion.apply_to(self.metadata)
        return self.metadata

    def save(self, sink: ImageSink, renderer: Optional[TitleRenderer] = None) -> EncodeResult:
        """
        Produce the final image and hand it to ``sink``.

        The image always goes through ``renderer``, which re-encodes it as
        JPEG and draws the title when the visual title is enabled and a
        title is set. The metadata is then written into the rendered
        image; if that degrades, the rendered image is saved without it.

        Without a renderer a JPEG upload is encoded as uploaded; a title
        burn-in or a non-JPEG upload then raises.

        Args:
            sink: Receives the final bytes and file name
            renderer: Re-encodes the image and draws the visual title

        Returns:
            EncodeResult of the metadata injection

        Raises:
            MetaMorphError: If nothing is loaded, or the image needs a
                renderer and none was given
        """
        if self.image is None or self.filename is None:
            raise MetaMorphError("No image loaded")

        image = self.image
        title = self.metadata.title if self.add_visual_title and self.metadata.title else None
        if renderer is not None:
            image = renderer.render(image, self.mime_type or 'image/jpeg', title)
        elif title is not None:
            raise MetaMorphError("Visual title requested without a renderer")
        elif not is_jpeg(image):
            raise MetaMorphError(f"{self.filename} is not a JPEG and no renderer was given")

        result = self.codec.encode(image, self.metadata)
        if result.status == CodecStatus.DEGRADED:
            logger.warning("Saving %s without updated metadata", self.filename)
        elif result.status == CodecStatus.EMPTY:
            logger.warning("Saving %s without metadata", self.filename)

        sink.save(result.data, download_filename(self.metadata, self.filename))
        return result
