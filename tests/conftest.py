from mpi4py import MPI
import pytest


@pytest.fixture
def sub_comm(request):
    """
    Communicator with the first n ranks of COMM_WORLD, n being the min_size of the mpi mark.

    The ranks left out get MPI.COMM_NULL.
    """

    mark = request.node.get_closest_marker("mpi")
    size = mark.kwargs.get("min_size", 1) if mark is not None else 1

    comm = MPI.COMM_WORLD
    color = 0 if comm.Get_rank() < size else MPI.UNDEFINED
    sub = comm.Split(color, comm.Get_rank())

    yield sub

    if sub != MPI.COMM_NULL:
        sub.Free()
