"""Merges uploaded documents into the context text sent with a new chat."""

import logging

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"


class DuplicateDocumentError(ValueError):
    """Raised when a document with the same name is already loaded."""

    def __init__(self, name: str) -> None:
        super().__init__(f'File "{name}" has already been uploaded.')
        self.name = name


class UploadedFile:
    """A loaded document: its unique name and extracted text."""

    def __init__(self, name: str, content: str) -> None:
        self.name = name
        self.content = content

    def __repr__(self) -> str:
        return f"UploadedFile(name={self.name!r}, chars={len(self.content)})"


class DocumentCollection:
    """Ordered, name-unique set of uploaded documents.

    ``context`` is always the contents in upload order joined by
    CONTEXT_SEPARATOR.
    """

    def __init__(self) -> None:
        self._files: list[UploadedFile] = []

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self):
        return iter(list(self._files))

    def __contains__(self, name: object) -> bool:
        return any(f.name == name for f in self._files)

    @property
    def names(self) -> list[str]:
        return [f.name for f in self._files]

    @property
    def context(self) -> str:
        return CONTEXT_SEPARATOR.join(f.content for f in self._files)

    def add(self, name: str, content: str) -> UploadedFile:
        """Append a document.

        Raises:
            DuplicateDocumentError: If a document with this name is loaded.
        """
        if name in self:
            raise DuplicateDocumentError(name)
        uploaded = UploadedFile(name, content)
        self._files.append(uploaded)
        logger.info(f"Loaded document {name} ({len(content)} chars)")
        return uploaded

    def remove(self, name: str) -> bool:
        """Remove the document with this name. Returns False if absent."""
        for i, uploaded in enumerate(self._files):
            if uploaded.name == name:
                del self._files[i]
                return True
        return False

    def clear(self) -> None:
        self._files.clear()
