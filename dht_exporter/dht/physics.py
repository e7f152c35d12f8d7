"""Values derived from a temperature/humidity pair."""

import math


def saturation_vapor_pressure(temperature: float) -> float:
    """Saturation vapor pressure in kPa (Tetens equation).

    Args:
        temperature: Air temperature in degrees Celsius.
    """
    return 0.6108 * math.exp(17.27 * temperature / (temperature + 237.3))


def vapor_pressure_deficit(temperature: float, humidity: float) -> float:
    """Vapor pressure deficit in kPa.

    The deficit is positive for unsaturated air and zero at 100% relative
    humidity.

    Args:
        temperature: Air temperature in degrees Celsius.
        humidity: Relative humidity in percent.
    """
    es = saturation_vapor_pressure(temperature)
    ea = (humidity / 100) * es
    return es - ea
