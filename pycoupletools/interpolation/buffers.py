"""Buffers used while computing the transfer coefficients of one interface marker"""

import numpy as np


class ExchangeBuffers:
    """
    Send and receive buffers for the donor vertices of one interface marker.

    The buffers live only inside the with block. On exit, normal or not,
    every array is dropped so that no marker keeps memory of the previous one.

    Parameters
    ----------
    counts : ndarray
        Number of owned donor vertices in each rank.
    n_dim : int
        Number of coordinates per vertex.

    Attributes
    ----------
    max_count : int
        Largest number of donor vertices in a rank. Stride of the flat buffers.
    n_possible : int
        Number of donor vertices in all ranks.
    send_coord, send_global_point : ndarray
        Contribution of this rank, padded up to max_count. Padded points are -1.
    receive_coord, receive_global_point : ndarray
        Contribution of all ranks, shape (size, max_count, n_dim) and (size, max_count).

    Examples
    --------
    >>> with ExchangeBuffers(counts, n_dim) as buffers:
    >>>     interpolator.collect_vertex_info(mark_donor, buffers)
    >>>     coords, point, processor = buffers.candidates()
    """

    def __init__(self, counts: np.ndarray, n_dim: int):

        self.counts = np.asarray(counts, dtype=np.int64)
        self.n_dim = n_dim
        self.n_processor = self.counts.size
        self.max_count = int(self.counts.max()) if self.counts.size > 0 else 0
        self.n_possible = int(self.counts.sum())
        self.released = False

        self.send_coord = None
        self.send_global_point = None
        self.receive_coord = None
        self.receive_global_point = None
        self._candidates = None

    def __enter__(self):

        self.send_coord = np.zeros((self.max_count, self.n_dim), dtype=np.double)
        self.send_global_point = np.full((self.max_count), -1, dtype=np.int64)

        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False

    def release(self):
        self.send_coord = None
        self.send_global_point = None
        self.receive_coord = None
        self.receive_global_point = None
        self._candidates = None
        self.released = True

    def set_received(self, coord: np.ndarray, global_point: np.ndarray):
        """Store the flat gathered buffers with shape (rank, slot)"""

        self.receive_coord = coord.reshape((self.n_processor, self.max_count, self.n_dim))
        self.receive_global_point = global_point.reshape((self.n_processor, self.max_count))
        self._candidates = None

    def candidates(self):
        """
        Donor candidates without the padding.

        The candidates are ordered by owning rank and then by slot in that rank.

        Returns
        -------
        coords : ndarray
            shape = (n_possible, n_dim).
        global_point : ndarray
            shape = (n_possible,).
        processor : ndarray
            shape = (n_possible,).
        """

        if self.released:
            raise ValueError("The exchange buffers have already been released")
        if self.receive_coord is None:
            raise ValueError("The donor vertex information has not been collected")

        if self._candidates is None:
            slot = np.arange(self.max_count, dtype=np.int64)
            valid = slot[np.newaxis, :] < self.counts[:, np.newaxis]
            coords = np.ascontiguousarray(self.receive_coord[valid])
            global_point = self.receive_global_point[valid]
            processor = np.repeat(
                np.arange(self.n_processor, dtype=np.int32), self.counts
            )
            self._candidates = (coords, global_point, processor)

        return self._candidates

    @property
    def nbytes(self):
        arrays = [
            self.send_coord,
            self.send_global_point,
            self.receive_coord,
            self.receive_global_point,
        ]
        if self._candidates is not None:
            arrays.extend(self._candidates)
        return sum(a.nbytes for a in arrays if a is not None)


class DonorScratch:
    """
    Working arrays of one search thread.

    Sized once for all the candidates of a marker and reused for every target point.
    Must never be shared between threads.
    """

    def __init__(self, n_possible: int, n_dim: int):
        self.difference = np.empty((n_possible, n_dim), dtype=np.double)
        self.dist2 = np.empty((n_possible), dtype=np.double)

    def squared_distance(self, coords: np.ndarray, point: np.ndarray) -> np.ndarray:
        """Squared euclidean distance from point to every row of coords"""
        np.subtract(coords, point, out=self.difference)
        np.einsum("ij,ij->i", self.difference, self.difference, out=self.dist2)
        return self.dist2
