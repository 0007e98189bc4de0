""" Contains the nearest neighbor interpolator"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import NamedTuple
import threading
import numpy as np
from tqdm import tqdm
from .interpolator import Interpolator, InsufficientDonorsError
from .buffers import ExchangeBuffers, DonorScratch

EPS = np.finfo(np.double).eps


class InterfaceStatistics(NamedTuple):
    """Distance from the owned target vertices of an interface to their closest donor"""

    interface: int
    n_target: int
    avg_distance: float
    max_distance: float


class NearestNeighbor(Interpolator):
    """
    Inverse distance interpolation from the closest donor points.

    Every rank receives the coordinates of all the donor vertices of an
    interface, and finds, for each of its owned target vertices, the n_donor
    closest ones. The coefficients are the inverse squared distances,
    normalized to add up to one.

    Equally distant donors are ordered by owning rank and then by position
    in that rank, so the result does not depend on the number of threads.

    Examples
    --------
    >>> from mpi4py import MPI
    >>> from pycoupletools.comm.router import Router
    >>> rt = Router(MPI.COMM_WORLD)
    >>> nn = NearestNeighbor(rt, fluid, solid, InterfaceConfig(n_donor=4))
    >>> nn.set_transfer_coeff()
    >>> record = solid["wall"].transfer[0]
    """

    def set_transfer_coeff(self):

        n_donor = self.config.n_donor
        n_marker_interface = self.get_n_marker_interface()

        self.log.write("info", f"Computing nearest neighbor transfer coefficients from {self.donor_zone.name} to {self.target_zone.name}")
        self.log.write("info", f"n_donor: {n_donor}, num_threads: {self.config.num_threads}, interfaces: {n_marker_interface}")

        for interface in range(1, n_marker_interface + 1):

            mark_donor = self.find_interface_marker(self.donor_zone, interface)
            mark_target = self.find_interface_marker(self.target_zone, interface)

            donor_present, target_present = self.check_interface_boundary(
                mark_donor, mark_target
            )
            if not (donor_present or target_present):
                self.log.write("debug", f"Interface {interface} is not part of these zones, skipping")
                continue

            self.log.sync_tic(id=interface)

            counts = self.determine_array_size(mark_donor)

            with ExchangeBuffers(counts, self.n_dim) as buffers:

                self.collect_vertex_info(mark_donor, buffers)

                n_used = self.donors_per_target(interface, buffers.n_possible, target_present)

                if mark_target is not None and n_used > 0:
                    marker = self.target_zone[mark_target]
                    targets, point, processor, coeff, dist2 = self.find_donors(
                        marker, buffers, n_used
                    )
                    commit_transfer_records(marker, targets, point, processor, coeff)
                else:
                    dist2 = np.zeros((0, 1), dtype=np.double)

                self.statistics[interface] = self.reduce_statistics(interface, dist2)

            stats = self.statistics[interface]
            self.log.write(
                "info",
                f"Interface {interface}: {buffers.n_possible} donors, {stats.n_target} targets, "
                f"closest donor distance avg = {stats.avg_distance:.6e}, max = {stats.max_distance:.6e}",
            )
            self.log.sync_toc(id=interface, message=f"Interface {interface} done")

    def donors_per_target(self, interface: int, n_possible: int, target_present: bool):
        """
        Decide how many donors each target gets in this interface.

        The decision only uses values that are the same in all ranks,
        so every rank takes the same branch.
        """

        n_donor = self.config.n_donor

        if not target_present:
            return 0

        if n_possible == 0:
            raise InsufficientDonorsError(
                f"Interface {interface}: target vertices exist but no donor vertex was found in zone {self.donor_zone.name}"
            )

        if n_possible < n_donor:
            if self.config.insufficient_donors == "raise":
                raise InsufficientDonorsError(
                    f"Interface {interface}: {n_donor} donors requested but only {n_possible} exist"
                )
            self.log.write(
                "warning",
                f"Interface {interface}: {n_donor} donors requested but only {n_possible} exist, using {n_possible}",
            )
            return n_possible

        return n_donor

    def find_donors(self, marker, buffers: ExchangeBuffers, n_used: int):
        """
        Find the closest donors of every owned vertex of a target marker.

        The search runs in a thread pool. Each thread works on chunks of
        target vertices with its own scratch buffers.

        Returns
        -------
        targets : ndarray
            Index in the marker of the owned target vertices.
        point, processor, coeff : ndarray
            Donor global index, donor rank and coefficient. shape = (n_target, n_used).
        dist2 : ndarray
            Squared distance to the selected donors. shape = (n_target, n_used).
        """

        coords, global_point, donor_processor = buffers.candidates()
        targets = np.flatnonzero(marker.domain)
        n_target = targets.size
        target_coords = marker.coords

        selected = np.zeros((n_target, n_used), dtype=np.int64)
        dist2 = np.zeros((n_target, n_used), dtype=np.double)
        coeff = np.zeros((n_target, n_used), dtype=np.double)

        num_threads = self.config.num_threads
        chunk_size = max(1, -(-n_target // (2 * num_threads)))
        scratch = threading.local()

        def search_chunk(start, end):

            work = getattr(scratch, "work", None)
            if work is None:
                work = DonorScratch(buffers.n_possible, self.n_dim)
                scratch.work = work

            for i in range(start, end):
                d2 = work.squared_distance(coords, target_coords[targets[i]])
                nearest = select_nearest(d2, n_used)
                selected[i] = nearest
                dist2[i] = d2[nearest]
                coeff[i] = inverse_distance_weights(dist2[i])

        with ThreadPoolExecutor(max_workers=num_threads) as executor:
            futures = [
                executor.submit(search_chunk, start, min(start + chunk_size, n_target))
                for start in range(0, n_target, chunk_size)
            ]
            for future in tqdm(
                as_completed(futures),
                total=len(futures),
                disable=not self.config.progress_bar,
                desc=f"{marker.name}",
            ):
                future.result()

        return targets, global_point[selected], donor_processor[selected], coeff, dist2

    def reduce_statistics(self, interface: int, dist2: np.ndarray) -> InterfaceStatistics:
        """Gather the closest donor distances of all ranks. Collective."""

        closest = np.sqrt(dist2[:, 0]) if dist2.shape[0] > 0 else np.zeros((0))
        local = np.array(
            [closest.size, np.sum(closest), np.max(closest) if closest.size > 0 else 0.0],
            dtype=np.double,
        )
        gathered = self.rt.all_gather_fixed(local, dtype=np.double).reshape((-1, 3))

        n_target = int(np.sum(gathered[:, 0]))
        avg_distance = float(np.sum(gathered[:, 1]) / n_target) if n_target > 0 else 0.0
        max_distance = float(np.max(gathered[:, 2]))

        return InterfaceStatistics(interface, n_target, avg_distance, max_distance)


def select_nearest(dist2: np.ndarray, k: int) -> np.ndarray:
    """
    Indices of the k smallest entries of dist2, closest first.

    Only the k selected entries are sorted. Equal distances are ordered by
    index, including at the boundary of the selection.

    Parameters
    ----------
    dist2 : ndarray
        Squared distances of the candidates.
    k : int
        Number of entries to select. Must not exceed dist2.size.

    Returns
    -------
    ndarray
        Indices of the selected candidates.
    """

    n = dist2.size
    if k >= n:
        return np.argsort(dist2, kind="stable")

    partition = np.argpartition(dist2, k - 1)
    kth = dist2[partition[k - 1]]

    # Which of the candidates at the kth distance survive is fixed by index
    closer = np.flatnonzero(dist2 < kth)
    tied = np.flatnonzero(dist2 == kth)[: k - closer.size]
    selected = np.concatenate((closer, tied))

    order = np.lexsort((selected, dist2[selected]))
    return selected[order]


def inverse_distance_weights(dist2: np.ndarray) -> np.ndarray:
    """Normalized inverse distance weights, regularized for coincident points"""
    weights = 1.0 / (dist2 + EPS)
    return weights / np.sum(weights)


def commit_transfer_records(marker, targets, point, processor, coeff):
    """
    Write the donors of each target vertex into a freshly allocated record.

    Vertices that are not in targets lose any record from a previous run.
    """

    stale = np.ones((marker.n_vertex), dtype=bool)
    stale[targets] = False
    for ivertex in np.flatnonzero(stale):
        marker.transfer[ivertex] = None

    n_used = coeff.shape[1]
    for i, ivertex in enumerate(targets):
        marker.allocate_donor_info(ivertex, n_used)
        for idonor in range(n_used):
            marker.set_interp_donor_point(ivertex, idonor, point[i, idonor])
            marker.set_interp_donor_processor(ivertex, idonor, processor[i, idonor])
            marker.set_donor_coeff(ivertex, idonor, coeff[i, idonor])
