"This module contains the class router"

import numpy as np
from mpi4py import MPI
from .collective import Collective, check_sendrecv_counts


class Router(Collective):
    """
    This class handles the collective communication between ranks in a MPI communicator.

    Parameters
    ----------
    comm : MPI communicator
        The MPI communicator that is used for the communication.

    Attributes
    ----------
    comm : MPI communicator
        The MPI communicator that is used for the communication.
    rank : int
        Rank of this process in comm.
    size : int
        Size of comm.

    Notes
    -----
    The data is always flattened before sending and recieved data is always flattened.
    The user must reshape the data after recieving it.

    Examples
    --------
    To initialize simply use the communicator

    >>> from mpi4py import MPI
    >>> from pycoupletools.comm.router import Router
    >>> comm = MPI.COMM_WORLD
    >>> rt = Router(comm)
    """

    def __init__(self, comm):

        self.comm = comm
        self.rank = comm.Get_rank()
        self.size = comm.Get_size()

    def barrier(self):
        self.comm.Barrier()

    def exchange_counts(self, local_count):
        """
        Tell every rank how many entries every other rank holds.

        This is a wrapper to the MPI Allgather function.

        Parameters
        ----------
        local_count : int
            Number of entries in this rank.

        Returns
        -------
        counts : ndarray
            Counts of all ranks, ordered by rank.

        Examples
        --------
        >>> rt = Router(comm)
        >>> counts = rt.exchange_counts(n_local_vertex)
        >>> max_count = counts.max()
        """

        sendbuf = np.ones((1), dtype=np.int64) * local_count
        counts = np.zeros((self.size), dtype=np.int64)
        self.comm.Allgather(sendbuf, counts)

        return counts

    def all_gather_fixed(self, data, dtype=None):
        """
        Gathers a buffer of the same size from all processes to all processes.

        This is a wrapper to the MPI Allgather function.

        Parameters
        ----------
        data : ndarray
            Data that is gathered in all processes. Same size in every rank.
        dtype : dtype
            The data type of the data that is gathered.

        Returns
        -------
        recvbuf : ndarray
            The gathered data, ordered by rank.
            The data is always recieved flattened. User must reshape it.

        Examples
        --------
        >>> rt = Router(comm)
        >>> local_data = np.ones((max_count, 3), dtype=np.double) * rank
        >>> recvbf = rt.all_gather_fixed(data=local_data, dtype=np.double)
        >>> recvbf = recvbf.reshape((-1, max_count, 3))
        """

        if dtype is None:
            dtype = data.dtype

        sendbuf = np.ascontiguousarray(data, dtype=dtype).reshape(-1)

        # Check if any message is too large
        check_sendrecv_counts(np.array([sendbuf.size * self.size], dtype=np.int64))

        recvbuf = np.empty((self.size * sendbuf.size), dtype=dtype)
        self.comm.Allgather(sendbuf, recvbuf)

        return recvbuf

    def all_reduce_max(self, value):
        return int(self.comm.allreduce(int(value), op=MPI.MAX))

    def gather_in_root(self, data=None, root=0, dtype=None):
        """
        Gathers data from all processes to the root process.

        This is a wrapper to the MPI Gatherv function.

        Parameters
        ----------
        data : ndarray
            Data that is gathered in the root process.
        root : int
            The rank that will gather the data.
        dtype : dtype
            The data type of the data that is gathered.

        Returns
        -------
        recvbuf : ndarray
            The gathered data in the root process.
            The data is always recieved flattened. User must reshape it.
        sendcounts : ndarray
            The number of data that was sent from each rank.

        Examples
        --------
        >>> rt = Router(comm)
        >>> local_data = np.ones(((rank+1)*10, 3), dtype=np.double)*rank
        >>> recvbf, sendcounts = rt.gather_in_root(data = local_data,
        >>>                      root = 0, dtype = np.double)
        """

        if dtype is None:
            dtype = data.dtype

        # Populate the send buffer
        sendbuff = np.ascontiguousarray(data, dtype=dtype).reshape(-1)

        # Collect local array sizes using the high-level mpi4py gather
        sendcounts = np.array(self.comm.allgather(sendbuff.size), dtype=np.int64)

        # Check if any message is too large
        check_sendrecv_counts(np.array([np.sum(sendcounts)], dtype=np.int64))

        if self.rank == root:
            recvbuf = np.empty(np.sum(sendcounts), dtype=dtype)
        else:
            recvbuf = None

        self.comm.Gatherv(sendbuf=sendbuff, recvbuf=(recvbuf, sendcounts), root=root)

        return recvbuf, sendcounts
