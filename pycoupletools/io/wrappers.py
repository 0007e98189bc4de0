"""Wrappers to ease IO"""

import os
import h5py
import numpy as np
from ..datatypes.zone import Marker


def linear_partition(m: int, rank: int, size: int):
    """
    Linearly load balanced partition of m entries.

    Returns
    -------
    local_size : int
        Number of entries in this rank.
    offset : int
        Index of the first entry of this rank.
    """

    sizes = [
        int(np.floor((np.double(m) + np.double(size) - np.double(pe_rank) - 1) / np.double(size)))
        for pe_rank in range(size)
    ]
    return sizes[rank], int(np.sum(sizes[:rank]))


def read_points(collective, fname: str, distributed: bool = True):
    """
    Read interface points from an hdf5 file.

    The file must contain a "coords" dataset of shape (n_points, n_dim).
    Optional datasets are "global_index" (default is the position in the file)
    and "domain" (default is all True).

    Parameters
    ----------
    collective : Collective
        Group of ranks reading the file.
    fname : str
        Name of the file.
    distributed : bool
        If True, each rank keeps a linearly load balanced slice of the points.
        If False, every rank keeps all of them.

    Returns
    -------
    dict
        Keys "coords", "global_index" and "domain".
    """

    extension = os.path.basename(fname).split(".")[-1]
    if extension not in ("hdf5", "h5"):
        raise ValueError("The file extension is not supported")

    with h5py.File(fname, "r") as f:

        if "coords" not in f:
            raise KeyError(f"coords not found in {fname}")

        n_points = f["coords"].shape[0]
        n_dim = f["coords"].shape[1] if len(f["coords"].shape) > 1 else 1
        if distributed:
            local_size, offset = linear_partition(n_points, collective.rank, collective.size)
        else:
            local_size, offset = n_points, 0
        local_slice = slice(offset, offset + local_size)

        data = {}
        coords = f["coords"][local_slice]
        data["coords"] = np.asarray(coords, dtype=np.double).reshape((local_size, n_dim))

        if "global_index" in f:
            data["global_index"] = np.asarray(f["global_index"][local_slice], dtype=np.int64)
        else:
            data["global_index"] = np.arange(offset, offset + local_size, dtype=np.int64)

        if "domain" in f:
            data["domain"] = np.asarray(f["domain"][local_slice], dtype=bool)
        else:
            data["domain"] = np.ones((local_size), dtype=bool)

    return data


def write_transfer_coefficients(collective, fname: str, marker: Marker, root: int = 0):
    """
    Write the transfer records of a target marker to an hdf5 file.

    The records of all ranks are gathered in the root, which writes the file.
    Vertices without a record (halo vertices) are not written.

    Datasets
    --------
    target_index : (n,)
        Global index of each target vertex.
    n_donor : (n,)
        Number of valid slots of each record.
    donor_point, donor_processor : (n, n_slots)
        Donor global index and owning rank, padded with -1.
    coeff : (n, n_slots)
        Coefficients, padded with 0.

    Parameters
    ----------
    collective : Collective
        Group of ranks sharing the marker.
    fname : str
        Name of the file. Must end in .hdf5 or .h5.
    marker : Marker or None
        Target marker in this rank. None if the marker is not in this rank.
    root : int
        Rank that writes.
    """

    extension = os.path.basename(fname).split(".")[-1]
    if extension not in ("hdf5", "h5"):
        raise ValueError("The file extension is not supported")

    if marker is None:
        owned = []
    else:
        owned = [i for i, record in enumerate(marker.transfer) if record is not None]

    local_slots = max([len(marker.transfer[i]) for i in owned], default=0)
    n_slots = collective.all_reduce_max(local_slots)

    n_local = len(owned)
    target_index = np.zeros((n_local), dtype=np.int64)
    n_donor = np.zeros((n_local), dtype=np.int64)
    donor_point = np.full((n_local, n_slots), -1, dtype=np.int64)
    donor_processor = np.full((n_local, n_slots), -1, dtype=np.int64)
    coeff = np.zeros((n_local, n_slots), dtype=np.double)

    for j, i in enumerate(owned):
        record = marker.transfer[i]
        n = len(record)
        target_index[j] = marker.global_index[i]
        n_donor[j] = n
        donor_point[j, :n] = record.donor_point
        donor_processor[j, :n] = record.donor_processor
        coeff[j, :n] = record.coeff

    data_dict = {}
    data_dict["target_index"], _ = collective.gather_in_root(target_index, root=root, dtype=np.int64)
    data_dict["n_donor"], _ = collective.gather_in_root(n_donor, root=root, dtype=np.int64)
    data_dict["donor_point"], _ = collective.gather_in_root(donor_point, root=root, dtype=np.int64)
    data_dict["donor_processor"], _ = collective.gather_in_root(donor_processor, root=root, dtype=np.int64)
    data_dict["coeff"], _ = collective.gather_in_root(coeff, root=root, dtype=np.double)

    if collective.rank == root:
        for key in ["donor_point", "donor_processor", "coeff"]:
            data_dict[key] = data_dict[key].reshape((data_dict["target_index"].size, n_slots))

        with h5py.File(fname, "w") as f:
            for key in data_dict.keys():
                data = data_dict[key]
                f.create_dataset(key, data=data, dtype=data.dtype)
            if marker is not None:
                f.attrs["marker"] = marker.name


def read_transfer_coefficients(fname: str):
    """Read a file written by write_transfer_coefficients into a dictionary"""

    with h5py.File(fname, "r") as f:
        data = {}
        for key in ["target_index", "n_donor", "donor_point", "donor_processor", "coeff"]:
            data[key] = f[key][:]

    return data
