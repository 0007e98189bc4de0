"""Factory for selection of the interface interpolator"""

from ..config import InterfaceConfig

NoneType = type(None)


def get_interpolator(collective, donor_zone, target_zone, config=None, compute=True):
    """
    Get the interpolator selected in the settings.

    Parameters
    ----------
    collective : Collective
        Group of ranks that share the zones.
    donor_zone, target_zone : Zone
        Zones coupled through their interface markers.
    config : InterfaceConfig, optional
        Settings. kind_interpolation selects the interpolator.
    compute : bool
        If True, the transfer coefficients are computed before returning.

    Returns
    -------
    Interpolator
    """

    if isinstance(config, NoneType):
        config = InterfaceConfig()

    interpolator_type = config.kind_interpolation

    if interpolator_type == "nearest_neighbor":
        from .nearest_neighbor import NearestNeighbor

        interpolator = NearestNeighbor(collective, donor_zone, target_zone, config)
    else:
        raise ValueError("Invalid interpolator type")

    if compute:
        interpolator.set_transfer_coeff()

    return interpolator
