""" Contains the classes that describe the interface geometry of a zone"""

import numpy as np

NoneType = type(None)


class TransferRecord:
    """
    Donor information of one target vertex.

    Holds exactly n slots, each with the global index of a donor point,
    the rank that owns the donor and the interpolation coefficient.
    All slots are allocated at once, before any of them is written.

    Parameters
    ----------
    n_donor : int
        Number of slots.

    Attributes
    ----------
    donor_point : ndarray
        Global index of the donor of each slot. -1 until set.
    donor_processor : ndarray
        Rank owning the donor of each slot. -1 until set.
    coeff : ndarray
        Interpolation coefficient of each slot.
    """

    __slots__ = ("donor_point", "donor_processor", "coeff")

    def __init__(self, n_donor: int):

        self.donor_point = np.full((n_donor), -1, dtype=np.int64)
        self.donor_processor = np.full((n_donor), -1, dtype=np.int32)
        self.coeff = np.zeros((n_donor), dtype=np.double)

    @property
    def n_donor(self):
        return self.coeff.size

    def __len__(self):
        return self.coeff.size

    def __iter__(self):
        for i in range(self.coeff.size):
            yield (
                int(self.donor_point[i]),
                int(self.donor_processor[i]),
                float(self.coeff[i]),
            )

    def __repr__(self):
        return f"TransferRecord({list(self)})"


class Marker:
    """
    Boundary segment of a zone, as seen by this rank.

    Parameters
    ----------
    name : str
        Name of the marker.
    global_index : ndarray
        Global point index of each vertex. Unique in the whole zone.
    coords : ndarray
        Coordinates of the vertices. shape = (n_vertex, n_dim).
    domain : ndarray, optional
        True for the vertices owned by this rank, False for halo vertices.
        Default is all True.
    interface : int, optional
        Tag of the zone interface this marker belongs to (starting at 1).
        None if the marker is not part of an interface.

    Attributes
    ----------
    transfer : list
        One TransferRecord per vertex, None for the vertices that have not been
        assigned donors.
    """

    def __init__(
        self,
        name: str,
        global_index: np.ndarray = None,
        coords: np.ndarray = None,
        domain: np.ndarray = None,
        interface: int = None,
    ):

        self.name = name

        if isinstance(global_index, NoneType):
            global_index = np.zeros((0), dtype=np.int64)
        self.global_index = np.asarray(global_index, dtype=np.int64).reshape(-1)
        n_vertex = self.global_index.size

        if isinstance(coords, NoneType):
            coords = np.zeros((n_vertex, 0), dtype=np.double)
        coords = np.asarray(coords, dtype=np.double)
        if coords.ndim == 1:
            coords = coords.reshape((-1, 1))
        if coords.shape[0] != n_vertex:
            raise ValueError(
                f"Marker {name}: {coords.shape[0]} coordinates given for {n_vertex} vertices"
            )
        self.coords = coords

        if isinstance(domain, NoneType):
            self.domain = np.ones((n_vertex), dtype=bool)
        else:
            self.domain = np.asarray(domain, dtype=bool).reshape(-1)
            if self.domain.size != n_vertex:
                raise ValueError(
                    f"Marker {name}: {self.domain.size} domain flags given for {n_vertex} vertices"
                )

        if interface is not None and interface < 1:
            raise ValueError(f"Marker {name}: interface tags start at 1")
        self.interface = interface

        self.transfer = [None] * n_vertex

    @property
    def n_vertex(self):
        return self.global_index.size

    @property
    def n_dim(self):
        return self.coords.shape[1]

    def allocate_donor_info(self, ivertex: int, n_donor: int):
        """Replace the record of a vertex with a fresh one of n_donor slots"""
        self.transfer[ivertex] = TransferRecord(n_donor)
        return self.transfer[ivertex]

    def set_interp_donor_point(self, ivertex: int, idonor: int, point: int):
        self.transfer[ivertex].donor_point[idonor] = point

    def set_interp_donor_processor(self, ivertex: int, idonor: int, processor: int):
        self.transfer[ivertex].donor_processor[idonor] = processor

    def set_donor_coeff(self, ivertex: int, idonor: int, coeff: float):
        self.transfer[ivertex].coeff[idonor] = coeff

    def owned_donor_info(self):
        """
        Return the local index and coordinates of the owned vertices.

        Returns
        -------
        index : ndarray
            Index, in this marker, of the owned vertices.
        global_index : ndarray
            Global index of the owned vertices.
        coords : ndarray
            Coordinates of the owned vertices.
        """
        index = np.flatnonzero(self.domain)
        return index, self.global_index[index], self.coords[index]


class Zone:
    """
    Interface geometry of one zone in this rank.

    Parameters
    ----------
    name : str
        Name of the zone.
    n_dim : int
        Number of spatial dimensions, 2 or 3 for meshes (1 is accepted for line interfaces).
    markers : list, optional
        Markers of the zone present in this rank.

    Examples
    --------
    >>> zone = Zone("fluid", n_dim=3)
    >>> zone.add_marker("wall", global_index=gidx, coords=xyz, interface=1)
    """

    def __init__(self, name: str, n_dim: int = 3, markers: list = None):

        if n_dim not in (1, 2, 3):
            raise ValueError(f"Zone {name}: n_dim must be 1, 2 or 3, got {n_dim}")

        self.name = name
        self.n_dim = n_dim
        self.markers = {}

        if markers is not None:
            for marker in markers:
                self._register(marker)

    def add_marker(self, name: str, **kwargs) -> Marker:
        marker = Marker(name, **kwargs)
        self._register(marker)
        return marker

    def _register(self, marker: Marker):

        if marker.name in self.markers:
            raise ValueError(f"Zone {self.name}: marker {marker.name} already exists")
        if marker.n_vertex == 0:
            marker.coords = np.zeros((0, self.n_dim), dtype=np.double)
        if marker.n_vertex > 0 and marker.n_dim != self.n_dim:
            raise ValueError(
                f"Zone {self.name}: marker {marker.name} has {marker.n_dim} coordinates per vertex, expected {self.n_dim}"
            )
        self.markers[marker.name] = marker

    def __getitem__(self, name):
        return self.markers[name]

    def interface_tags(self):
        """Return the interface tags of the markers in this rank"""
        return sorted(
            {m.interface for m in self.markers.values() if m.interface is not None}
        )
