"""Pure numeric conversions shared by the format adapters.

Each helper covers one concept: the power zone table, the FIT offset encodings
for power and heart rate, Zwift's FTP fraction and pace units, and the
running cadence rule. None of them perform I/O or log.
"""
from __future__ import annotations

from typing import Union

from krd.models.base import Number
from krd.models.target import (
    BpmValue,
    PercentFtpValue,
    PercentMaxValue,
    WattsValue,
)

# Percent of FTP for each power zone.
POWER_ZONE_PERCENT_FTP: dict[int, int] = {
    1: 55,
    2: 75,
    3: 90,
    4: 105,
    5: 120,
    6: 150,
    7: 200,
}
DEFAULT_ZONE_PERCENT_FTP = 100

# Only used when absolute watts must be written to an FTP-relative format.
ASSUMED_FTP_WATTS = 250

FIT_POWER_WATTS_OFFSET = 1000
FIT_HR_BPM_OFFSET = 100
FIT_HR_PERCENT_MAX_CEILING = 200
FIT_HR_BPM_CEILING = 300

RUNNING_SPORTS = frozenset({"running", "Running"})


def power_zone_to_percent_ftp(zone: int) -> int:
    """Look up the percent of FTP for a power zone.

    Args:
        zone: Power zone number, nominally 1-7

    Returns:
        Percent of FTP; zones outside the table map to 100
    """
    return POWER_ZONE_PERCENT_FTP.get(zone, DEFAULT_ZONE_PERCENT_FTP)


def watts_to_percent_ftp(watts: Number, ftp: Number = ASSUMED_FTP_WATTS) -> float:
    return watts / ftp * 100


# ---------------------------------------------------------------------------
# FIT offset encodings
# ---------------------------------------------------------------------------


def encode_fit_power_watts(watts: Number) -> Number:
    return watts + FIT_POWER_WATTS_OFFSET


# Only the +1000 offset marks absolute watts. A bare 250 is 250% FTP, not
# 250 W; reading it as watts would break encode/decode for percent targets.
def decode_fit_power_value(value: Number) -> Union[WattsValue, PercentFtpValue, None]:
    """Disambiguate a FIT power ``targetValue``.

    Values above 1000 carry absolute watts with a 1000 offset, values in
    (0, 1000] are percent of FTP and anything else has no interpretation.
    """
    if value > FIT_POWER_WATTS_OFFSET:
        return WattsValue(value=value - FIT_POWER_WATTS_OFFSET)
    if value > 0:
        return PercentFtpValue(value=value)
    return None


def encode_fit_heart_rate_bpm(bpm: Number) -> Number:
    return bpm + FIT_HR_BPM_OFFSET


def decode_fit_heart_rate_value(
    value: Number,
) -> Union[BpmValue, PercentMaxValue, None]:
    """Disambiguate a FIT heart-rate ``targetValue``.

    (100, 200] is read as percent of max heart rate even though real bpm values
    fall in that band; (200, 300] is bpm with the 100 offset; (0, 100] is bpm
    written without an offset. Anything else has no interpretation.
    """
    if FIT_HR_BPM_OFFSET < value <= FIT_HR_PERCENT_MAX_CEILING:
        return PercentMaxValue(value=value)
    if FIT_HR_PERCENT_MAX_CEILING < value <= FIT_HR_BPM_CEILING:
        return BpmValue(value=value - FIT_HR_BPM_OFFSET)
    if 0 < value <= FIT_HR_BPM_OFFSET:
        return BpmValue(value=value)
    return None


# ---------------------------------------------------------------------------
# Zwift units
# ---------------------------------------------------------------------------


def zwift_power_to_percent_ftp(ftp_fraction: Number) -> float:
    """Zwift writes power as a fraction of FTP, 1.0 being 100%."""
    return ftp_fraction * 100


def percent_ftp_to_zwift_power(percent_ftp: Number) -> float:
    return percent_ftp / 100


def sec_per_km_to_mps(sec_per_km: Number) -> float:
    return 1000 / sec_per_km


def mps_to_sec_per_km(mps: Number) -> float:
    return 1000 / mps


# ---------------------------------------------------------------------------
# Cadence
# ---------------------------------------------------------------------------


def is_running_sport(sport: str | None) -> bool:
    return sport in RUNNING_SPORTS


def spm_to_rpm(spm: Number) -> float:
    return spm / 2


def rpm_to_spm(rpm: Number) -> Number:
    return rpm * 2


def cadence_to_canonical(cadence: Number, sport: str | None) -> Number:
    """Convert a source cadence to rpm; running sources count steps per minute."""
    return spm_to_rpm(cadence) if is_running_sport(sport) else cadence


def cadence_from_canonical(rpm: Number, sport: str | None) -> Number:
    return rpm_to_spm(rpm) if is_running_sport(sport) else rpm
