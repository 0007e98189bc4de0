#!/usr/bin/env python3

import argparse
from mpi4py import MPI
from ..comm.router import Router
from ..config import InterfaceConfig
from ..datatypes.zone import Zone
from ..interpolation.interpolator_factory import get_interpolator
from ..io.wrappers import read_points, write_transfer_coefficients


def main(argv=None):
    # Initialize the MPI communicator
    comm = MPI.COMM_WORLD
    rt = Router(comm)

    # Create the argument parser
    parser = argparse.ArgumentParser(description="Compute nearest neighbor transfer coefficients between two point sets.")

    # Define command-line arguments
    parser.add_argument("--donor", type=str, required=True, help="hdf5 file with the donor points.")
    parser.add_argument("--target", type=str, required=True, help="hdf5 file with the target points.")
    parser.add_argument("--output", type=str, default="./transfer_coefficients.hdf5", help="hdf5 file to write the coefficients to.")
    parser.add_argument("--inputs", type=str, default=None, help="json file with the interface settings.")
    parser.add_argument("--n_donor", type=int, default=None, help="Number of donors per target point. Overrides the inputs file.")
    parser.add_argument("--num_threads", type=int, default=None, help="Threads per rank. Overrides the inputs file.")

    # Parse the arguments
    args = parser.parse_args(argv)

    if args.inputs is not None:
        settings = InterfaceConfig.from_json(args.inputs).as_dict()
    else:
        settings = {}
    if args.n_donor is not None:
        settings["n_donor"] = args.n_donor
    if args.num_threads is not None:
        settings["num_threads"] = args.num_threads
    settings["n_marker_interface"] = 1
    config = InterfaceConfig.from_dict(settings)

    # Read the points, each rank keeps a slice
    donor_data = read_points(rt, args.donor)
    target_data = read_points(rt, args.target)

    n_dim = donor_data["coords"].shape[1]
    donor_zone = Zone("donor", n_dim=n_dim)
    donor_zone.add_marker("interface", interface=1, **donor_data)
    target_zone = Zone("target", n_dim=target_data["coords"].shape[1])
    target = target_zone.add_marker("interface", interface=1, **target_data)

    get_interpolator(rt, donor_zone, target_zone, config)

    write_transfer_coefficients(rt, args.output, target)


if __name__ == "__main__":
    main()
