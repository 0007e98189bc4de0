"""Settings of the interface interpolation"""

import json
import os

INTERPOLATION_KINDS = ("nearest_neighbor",)
INSUFFICIENT_DONOR_POLICIES = ("clamp", "raise")


class InterfaceConfig:
    """
    Settings shared by all ranks for the interpolation between two zones.

    Parameters
    ----------
    kind_interpolation : str
        Interpolation strategy. Default is nearest_neighbor.
    n_donor : int
        Number of donor points per target point. Values below 1 are raised to 1.
    insufficient_donors : str
        What to do if fewer than n_donor donors exist in the whole interface.
        "clamp" uses all the available donors, "raise" raises an error.
    num_threads : int, optional
        Number of threads used in the search. Default is os.cpu_count().
    n_marker_interface : int, optional
        Number of interface tags. If None, it is the largest tag found in any
        rank of either zone.
    progress_bar : bool
        Show a progress bar during the search.

    Examples
    --------
    >>> config = InterfaceConfig(n_donor=4)
    >>> config = InterfaceConfig.from_json("inputs.json")
    """

    def __init__(
        self,
        kind_interpolation: str = "nearest_neighbor",
        n_donor: int = 1,
        insufficient_donors: str = "clamp",
        num_threads: int = None,
        n_marker_interface: int = None,
        progress_bar: bool = False,
    ):

        if kind_interpolation not in INTERPOLATION_KINDS:
            raise ValueError(
                f"kind_interpolation '{kind_interpolation}' not recognized. Options are {INTERPOLATION_KINDS}"
            )
        if insufficient_donors not in INSUFFICIENT_DONOR_POLICIES:
            raise ValueError(
                f"insufficient_donors '{insufficient_donors}' not recognized. Options are {INSUFFICIENT_DONOR_POLICIES}"
            )

        self.kind_interpolation = kind_interpolation
        self.n_donor = max(int(n_donor if n_donor is not None else 1), 1)
        self.insufficient_donors = insufficient_donors

        if num_threads is None:
            num_threads = os.cpu_count() or 1
        self.num_threads = max(int(num_threads), 1)

        if n_marker_interface is not None and n_marker_interface < 0:
            raise ValueError("n_marker_interface cannot be negative")
        self.n_marker_interface = n_marker_interface

        self.progress_bar = progress_bar

    @classmethod
    def from_dict(cls, inputs: dict):
        """Create the settings from a dictionary, accepting the num_nearest_neighbors alias"""

        inputs = dict(inputs)
        if "num_nearest_neighbors" in inputs:
            if "n_donor" in inputs:
                raise KeyError("Give either n_donor or num_nearest_neighbors, not both")
            inputs["n_donor"] = inputs.pop("num_nearest_neighbors")

        known = {
            "kind_interpolation",
            "n_donor",
            "insufficient_donors",
            "num_threads",
            "n_marker_interface",
            "progress_bar",
        }
        unknown = set(inputs.keys()) - known
        if unknown:
            raise KeyError(f"Unknown interface settings: {sorted(unknown)}")

        return cls(**inputs)

    @classmethod
    def from_json(cls, fname: str):
        """Read the settings from a json inputs file"""
        with open(fname, "r") as f:
            inputs = json.load(f)
        return cls.from_dict(inputs)

    def as_dict(self):
        return {
            "kind_interpolation": self.kind_interpolation,
            "n_donor": self.n_donor,
            "insufficient_donors": self.insufficient_donors,
            "num_threads": self.num_threads,
            "n_marker_interface": self.n_marker_interface,
            "progress_bar": self.progress_bar,
        }
