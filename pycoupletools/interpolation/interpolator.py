""" Contains the interface for the interpolators between the markers of two zones"""

from abc import ABC, abstractmethod
import numpy as np
from ..comm.collective import Collective
from ..config import InterfaceConfig
from ..datatypes.zone import Zone
from ..monitoring.logger import Logger
from .buffers import ExchangeBuffers

NoneType = type(None)


class InsufficientDonorsError(ValueError):
    """Raised when an interface does not have enough donor points for its targets"""


class Interpolator(ABC):
    """
    Interface for the interpolators that compute transfer coefficients between two zones.

    The interpolator goes through the interface tags and, for the markers of the
    donor and target zones that share a tag, assigns to every owned target vertex
    a list of donor points and coefficients.

    All the methods that communicate are collective. They must be called by
    every rank of the collective, in the same order.

    Parameters
    ----------
    collective : Collective
        Group of ranks that share the zones. See pycoupletools.comm.
    donor_zone : Zone
        Zone that provides the field values.
    target_zone : Zone
        Zone that receives the interpolated values.
    config : InterfaceConfig, optional
        Settings of the interpolation. Default settings if not given.

    Attributes
    ----------
    statistics : dict
        InterfaceStatistics of the processed interface tags, by tag.
    """

    def __init__(
        self,
        collective: Collective,
        donor_zone: Zone,
        target_zone: Zone,
        config: InterfaceConfig = None,
    ):

        if isinstance(config, NoneType):
            config = InterfaceConfig()

        if donor_zone.n_dim != target_zone.n_dim:
            raise ValueError(
                f"Zones {donor_zone.name} and {target_zone.name} have different dimensions: {donor_zone.n_dim} and {target_zone.n_dim}"
            )

        self.rt = collective
        self.donor_zone = donor_zone
        self.target_zone = target_zone
        self.n_dim = donor_zone.n_dim
        self.config = config
        self.statistics = {}

        self.log = Logger(comm=collective, module_name=type(self).__name__)

    def find_interface_marker(self, zone: Zone, interface: int):
        """
        Find the marker of a zone that belongs to an interface.

        Parameters
        ----------
        zone : Zone
            Zone to look into.
        interface : int
            Interface tag.

        Returns
        -------
        str or None
            Name of the marker in this rank, None if the zone has no
            marker with that tag in this rank.
        """

        for name, marker in zone.markers.items():
            if marker.interface == interface:
                return name
        return None

    def check_interface_boundary(self, mark_donor, mark_target):
        """
        Determine if the interface is present in any rank of each zone.

        A marker can be missing in a rank because of the partitioning or
        because it is not part of the zone. This is only known after
        asking all the ranks, so the result is the same everywhere.
        Both flags travel in the same message.

        Returns
        -------
        donor_present : bool
        target_present : bool
        """

        local_flags = np.array(
            [mark_donor is not None, mark_target is not None], dtype=np.int64
        )
        flags = self.rt.all_gather_fixed(local_flags, dtype=np.int64).reshape((-1, 2))

        donor_present = bool(np.any(flags[:, 0]))
        target_present = bool(np.any(flags[:, 1]))

        return donor_present, target_present

    def get_n_marker_interface(self):
        """Number of interface tags to go through, identical in all ranks"""

        if self.config.n_marker_interface is not None:
            return self.config.n_marker_interface

        local_tags = self.donor_zone.interface_tags() + self.target_zone.interface_tags()
        local_max = max(local_tags) if local_tags else 0
        return self.rt.all_reduce_max(local_max)

    def determine_array_size(self, mark_donor):
        """
        Exchange the number of owned donor vertices of every rank.

        Halo vertices are not counted, so that each donor point is
        contributed by its owner only.

        Parameters
        ----------
        mark_donor : str or None
            Donor marker in this rank.

        Returns
        -------
        counts : ndarray
            Number of owned donor vertices in each rank.
        """

        if mark_donor is None:
            n_local_vertex_donor = 0
        else:
            n_local_vertex_donor = int(np.count_nonzero(self.donor_zone[mark_donor].domain))

        return self.rt.exchange_counts(n_local_vertex_donor)

    def collect_vertex_info(self, mark_donor, buffers: ExchangeBuffers):
        """
        Gather the coordinates and global index of all donor vertices in all ranks.

        Parameters
        ----------
        mark_donor : str or None
            Donor marker in this rank.
        buffers : ExchangeBuffers
            Buffers of this marker. Filled in place.
        """

        if mark_donor is not None:
            _, global_point, coords = self.donor_zone[mark_donor].owned_donor_info()
            n_local = global_point.size
            buffers.send_coord[:n_local, :] = coords
            buffers.send_global_point[:n_local] = global_point

        receive_coord = self.rt.all_gather_fixed(buffers.send_coord, dtype=np.double)
        receive_global_point = self.rt.all_gather_fixed(
            buffers.send_global_point, dtype=np.int64
        )

        buffers.set_received(receive_coord, receive_global_point)

    @abstractmethod
    def set_transfer_coeff(self):
        """Compute the transfer coefficients of all the interface markers"""
