# Import required modules
from mpi4py import MPI #equivalent to the use of MPI_init() in C
import numpy as np

# Get mpi info
comm = MPI.COMM_WORLD

from pycoupletools.comm.router import Router
from pycoupletools.config import InterfaceConfig
from pycoupletools.datatypes.zone import Zone
from pycoupletools.interpolation.interpolator_factory import get_interpolator
from pycoupletools.io.wrappers import linear_partition, write_transfer_coefficients


def cylinder_surface(n_theta, n_z, radius=1.0, offset=0.0):
    """Points on a cylinder of unit height, flattened to a list"""
    theta = np.linspace(0, 2 * np.pi, n_theta, endpoint=False) + offset
    z = np.linspace(0, 1, n_z)
    th, zz = np.meshgrid(theta, z, indexing="ij")
    return np.stack([radius * np.cos(th).ravel(), radius * np.sin(th).ravel(), zz.ravel()], axis=1)


def main():

    rt = Router(comm)
    config = InterfaceConfig.from_json("inputs.json")

    # A fine fluid mesh and a coarse, rotated, structural mesh of the same surface
    fluid_points = cylinder_surface(128, 64)
    solid_points = cylinder_surface(40, 20, offset=0.05)

    # Each rank keeps a slice of both surfaces
    n_f, o_f = linear_partition(fluid_points.shape[0], rt.rank, rt.size)
    n_s, o_s = linear_partition(solid_points.shape[0], rt.rank, rt.size)

    fluid = Zone("fluid", n_dim=3)
    fluid.add_marker("wall", global_index=np.arange(o_f, o_f + n_f), coords=fluid_points[o_f:o_f + n_f], interface=1)
    solid = Zone("solid", n_dim=3)
    skin = solid.add_marker("skin", global_index=np.arange(o_s, o_s + n_s), coords=solid_points[o_s:o_s + n_s], interface=1)

    # Fluid loads go to the structure
    get_interpolator(rt, fluid, solid, config)
    write_transfer_coefficients(rt, "fluid_to_solid.hdf5", skin)


if __name__ == "__main__":
    main()
