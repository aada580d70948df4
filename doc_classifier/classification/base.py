from abc import ABC, abstractmethod
from typing import Any

from doc_classifier.classification.structures import ClassificationStructure
from doc_classifier.processor.models import UploadedFile


class BaseClassificationClient(ABC):
    """Contract for the three remote classification operations."""

    @abstractmethod
    def categorize(self, files: list[UploadedFile]) -> dict[str, Any]:
        """Assign a coarse category to every file.

        Returns:
            Parsed response of shape {"categories": [{"type", "files"}]}.

        Raises:
            ClassificationError: on any failure.
        """

    @abstractmethod
    def group_credit_cards(
        self,
        files: list[UploadedFile],
        structure: ClassificationStructure,
    ) -> dict[str, Any]:
        """Pair credit card fronts and backs.

        Returns:
            Parsed response of shape {"credit_cards_group": [...]}.
        """

    @abstractmethod
    def group_documents(
        self,
        files: list[UploadedFile],
        structure: ClassificationStructure,
    ) -> dict[str, Any]:
        """Refine other_documents categories and group them into purchases.

        Returns:
            Parsed response with "categories" and "documents_groups".
        """

    def close(self) -> None:
        """Release network resources. Safe to call more than once."""
