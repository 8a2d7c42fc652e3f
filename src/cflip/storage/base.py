from abc import ABC, abstractmethod


class SecureStore(ABC):
    """opaque storage of one secret blob per key."""

    @abstractmethod
    def store(self, key: str, data: str) -> None:
        """store data under key, replacing any previous value."""

    @abstractmethod
    def retrieve(self, key: str) -> str:
        """
        return the blob stored under key.

        raises:
            NotFoundError: if nothing is stored under key
            StorageIOError: if the backend fails
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """remove key. deleting a missing key is not an error."""
