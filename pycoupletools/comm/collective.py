"""Interface for the collective operations used by the interpolators"""

from abc import ABC, abstractmethod
import numpy as np

int32_limit = np.int64(2**31 - 1)


class Collective(ABC):
    """
    Interface for a group of processes that communicate through collectives.

    Every method is collective: all the ranks of the group must call it,
    in the same order, before any of them returns.

    Attributes
    ----------
    rank : int
        Rank of the calling process in the group.
    size : int
        Number of processes in the group.
    """

    rank = 0
    size = 1

    @abstractmethod
    def barrier(self):
        """Block until all ranks reach this point"""

    @abstractmethod
    def exchange_counts(self, local_count):
        """
        Publish one integer per rank to all ranks.

        Parameters
        ----------
        local_count : int
            Value contributed by this rank.

        Returns
        -------
        ndarray
            int64 array of shape (size,). Entry i is the value of rank i.
        """

    @abstractmethod
    def all_gather_fixed(self, data, dtype=None):
        """
        Gather a fixed size buffer from all ranks to all ranks.

        Parameters
        ----------
        data : ndarray
            Buffer contributed by this rank. All ranks must contribute the same size.
        dtype : dtype, optional
            Data type of the buffer. Defaults to data.dtype.

        Returns
        -------
        ndarray
            Flat array of size (size * data.size,) ordered by rank.
        """

    @abstractmethod
    def all_reduce_max(self, value):
        """Return the maximum of an integer over all ranks"""

    @abstractmethod
    def gather_in_root(self, data, root=0, dtype=None):
        """
        Gather variable size data from all ranks in the root rank.

        Returns
        -------
        recvbuf : ndarray or None
            Flattened data ordered by rank in the root, None elsewhere.
        sendcounts : ndarray
            Number of entries contributed by each rank.
        """


def check_sendrecv_counts(sendrecv_count: np.ndarray):
    """Verify that message counts can be represented in a single MPI call"""

    if np.any(sendrecv_count >= int32_limit):
        raise ValueError(
            "Send/Recv sendcount is too large for a single send according to MPI standard (max int32 = 2**31 -1 counts), use more ranks"
        )
    elif np.any(sendrecv_count < 0):
        raise ValueError(
            "Send/Recv sendcount cannot be negative, you might have overflowed the int32 limit"
        )
