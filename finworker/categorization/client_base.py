from abc import ABC, abstractmethod


class BaseCategorizationClient(ABC):
    """A model that labels numbered transaction lines with category names."""

    @abstractmethod
    def label_transactions(self, prompt: str) -> dict[int, str]:
        """Return ``{line index: category label}`` for the lines in ``prompt``.

        Labels are returned as the model wrote them; the caller normalises.

        Raises:
            CategorizationNetworkError: the model could not be reached.
            CategorizationError: the model answered in an unexpected shape.
        """
