"""Zwift interval attributes <-> canonical targets.

Zwift expresses power as a fraction of FTP, pace in seconds per kilometre
and cadence in rpm (steps per minute for runs). Heart rate is not
expressible; it is parked in ``kaiord:hrTarget*`` attributes so this library
can restore it.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from krd.adapters.base import DEFAULT_CONTEXT, EncodeContext
from krd.adapters.zwift.fields import RAMP_INTERVALS, ZwiftTargetFields
from krd.models.target import (
    OPEN_TARGET,
    BpmValue,
    CadenceTarget,
    HeartRateTarget,
    MpsValue,
    PaceTarget,
    PercentFtpValue,
    PercentMaxValue,
    PowerTarget,
    RangeValue,
    RpmValue,
    Target,
    TargetUnit,
    WattsValue,
    ZoneValue,
)
from krd.services.lossy_reporter import ConversionLogger, report_lossy
from krd.services.value_converters import (
    ASSUMED_FTP_WATTS,
    cadence_from_canonical,
    cadence_to_canonical,
    mps_to_sec_per_km,
    percent_ftp_to_zwift_power,
    power_zone_to_percent_ftp,
    sec_per_km_to_mps,
    watts_to_percent_ftp,
    zwift_power_to_percent_ftp,
)

logger = logging.getLogger(__name__)

ZwiftFields = Mapping[str, Any] | ZwiftTargetFields | None


def _decode_power_range(bag: ZwiftTargetFields) -> PowerTarget:
    if bag.original_watts_low is not None and bag.original_watts_high is not None:
        return PowerTarget(value=RangeValue(min=bag.original_watts_low, max=bag.original_watts_high))
    if bag.power_unit == TargetUnit.WATTS.value and bag.original_watts is not None:
        return PowerTarget(value=WattsValue(value=bag.original_watts))
    if bag.power_unit == TargetUnit.ZONE.value and bag.power_zone is not None:
        return PowerTarget(value=ZoneValue(value=bag.power_zone))
    if bag.power_unit == TargetUnit.PERCENT_FTP.value and bag.power_low == bag.power_high:
        return PowerTarget(value=PercentFtpValue(value=zwift_power_to_percent_ftp(bag.power_low)))
    return PowerTarget(
        value=RangeValue(
            min=zwift_power_to_percent_ftp(bag.power_low),
            max=zwift_power_to_percent_ftp(bag.power_high),
        )
    )


def _decode_heart_rate(bag: ZwiftTargetFields) -> Target:
    unit = bag.hr_target_unit
    if unit == TargetUnit.ZONE.value and bag.hr_target_zone is not None:
        return HeartRateTarget(value=ZoneValue(value=bag.hr_target_zone))
    if unit == TargetUnit.RANGE.value and bag.hr_target_low is not None and bag.hr_target_high is not None:
        return HeartRateTarget(value=RangeValue(min=bag.hr_target_low, max=bag.hr_target_high))
    if unit == TargetUnit.BPM.value and bag.hr_target_value is not None:
        return HeartRateTarget(value=BpmValue(value=bag.hr_target_value))
    if unit == TargetUnit.PERCENT_MAX.value and bag.hr_target_value is not None:
        return HeartRateTarget(value=PercentMaxValue(value=bag.hr_target_value))
    return OPEN_TARGET


def decode_zwift_target(fields: ZwiftFields, sport: str | None = None) -> Target:
    """Convert Zwift interval attributes into a canonical target.

    Checked in order: ``PowerLow``/``PowerHigh``, power zone metadata,
    ``Power``, ``pace``, ``Cadence`` and finally the heart-rate side channel.

    Args:
        fields: Interval attributes, prefixed or not
        sport: Canonical sport, used for the running cadence rule

    Returns:
        Canonical target, ``open`` when nothing usable is present
    """
    bag = ZwiftTargetFields.from_bag(fields)

    if bag.power_low is not None and bag.power_high is not None:
        return _decode_power_range(bag)
    if bag.power_unit == TargetUnit.ZONE.value and bag.power_zone is not None:
        return PowerTarget(value=ZoneValue(value=bag.power_zone))
    if bag.power is not None:
        if bag.power_unit == TargetUnit.WATTS.value and bag.original_watts is not None:
            return PowerTarget(value=WattsValue(value=bag.original_watts))
        return PowerTarget(value=PercentFtpValue(value=zwift_power_to_percent_ftp(bag.power)))
    if bag.pace is not None and bag.pace > 0:
        return PaceTarget(value=MpsValue(value=sec_per_km_to_mps(bag.pace)))
    if bag.cadence is not None:
        return CadenceTarget(value=RpmValue(value=cadence_to_canonical(bag.cadence, sport)))
    if bag.hr_target_unit is not None:
        return _decode_heart_rate(bag)
    logger.debug("Zwift interval carries no target attributes")
    return OPEN_TARGET


def _encode_power(
    target: PowerTarget, context: EncodeContext, conversion_logger: ConversionLogger | None
) -> ZwiftTargetFields:
    value = target.value
    ramp = context.interval_type in RAMP_INTERVALS

    if isinstance(value, RangeValue):
        low = watts_to_percent_ftp(value.min)
        high = watts_to_percent_ftp(value.max)
        report_lossy(
            conversion_logger,
            "Lossy conversion: watts converted to percent FTP",
            step_index=context.step_index,
            original_watts={"low": value.min, "high": value.max},
            assumed_ftp=ASSUMED_FTP_WATTS,
            converted_percent_ftp={"low": low, "high": high},
        )
        return ZwiftTargetFields(
            power_low=percent_ftp_to_zwift_power(low),
            power_high=percent_ftp_to_zwift_power(high),
            power_unit=TargetUnit.WATTS.value,
            original_watts_low=value.min,
            original_watts_high=value.max,
            assumed_ftp=ASSUMED_FTP_WATTS,
        )

    if isinstance(value, ZoneValue):
        power = percent_ftp_to_zwift_power(power_zone_to_percent_ftp(value.value))
        metadata = {"power_unit": TargetUnit.ZONE.value, "power_zone": value.value}
    elif isinstance(value, PercentFtpValue):
        power = percent_ftp_to_zwift_power(value.value)
        metadata = {"power_unit": TargetUnit.PERCENT_FTP.value}
    else:
        percent = watts_to_percent_ftp(value.value)
        power = percent_ftp_to_zwift_power(percent)
        metadata = {
            "power_unit": TargetUnit.WATTS.value,
            "original_watts": value.value,
            "assumed_ftp": ASSUMED_FTP_WATTS,
        }
        report_lossy(
            conversion_logger,
            "Lossy conversion: watts converted to percent FTP",
            step_index=context.step_index,
            original_watts=value.value,
            assumed_ftp=ASSUMED_FTP_WATTS,
            converted_percent_ftp=percent,
        )

    if ramp:
        return ZwiftTargetFields(power_low=power, power_high=power, **metadata)
    return ZwiftTargetFields(power=power, **metadata)


def _encode_heart_rate(
    target: HeartRateTarget, context: EncodeContext, conversion_logger: ConversionLogger | None
) -> ZwiftTargetFields:
    value = target.value
    report_lossy(
        conversion_logger,
        "Zwift does not support heart rate targets; stored as kaiord metadata only",
        step_index=context.step_index,
        unit=value.unit,
    )
    if isinstance(value, ZoneValue):
        return ZwiftTargetFields(hr_target_unit=value.unit, hr_target_zone=value.value)
    if isinstance(value, RangeValue):
        return ZwiftTargetFields(
            hr_target_unit=value.unit, hr_target_low=value.min, hr_target_high=value.max
        )
    return ZwiftTargetFields(hr_target_unit=value.unit, hr_target_value=value.value)


def _encode_pace(
    target: PaceTarget, context: EncodeContext, conversion_logger: ConversionLogger | None
) -> ZwiftTargetFields:
    value = target.value
    if isinstance(value, MpsValue):
        return ZwiftTargetFields(pace=mps_to_sec_per_km(value.value))
    if isinstance(value, RangeValue):
        report_lossy(
            conversion_logger,
            "Zwift pace has no range; writing the midpoint",
            step_index=context.step_index,
            min=value.min,
            max=value.max,
        )
        return ZwiftTargetFields(pace=mps_to_sec_per_km(value.midpoint))
    report_lossy(
        conversion_logger,
        "Zwift does not support pace zones; writing no target",
        step_index=context.step_index,
        zone=value.value,
    )
    return ZwiftTargetFields()


def _encode_cadence(
    target: CadenceTarget, context: EncodeContext, conversion_logger: ConversionLogger | None
) -> ZwiftTargetFields:
    value = target.value
    if isinstance(value, RangeValue):
        report_lossy(
            conversion_logger,
            "Zwift cadence has no range; writing the midpoint",
            step_index=context.step_index,
            min=value.min,
            max=value.max,
        )
        rpm = value.midpoint
    else:
        rpm = value.value
    return ZwiftTargetFields(cadence=cadence_from_canonical(rpm, context.sport))


def encode_zwift_target(
    target: Target,
    context: EncodeContext | None = None,
    conversion_logger: ConversionLogger | None = None,
) -> dict[str, Any]:
    """Convert a canonical target into prefixed Zwift interval attributes.

    ``context.interval_type`` selects ``Power`` (steady state) or
    ``PowerLow``/``PowerHigh`` (warmup, ramp, cooldown). Power ranges are read
    as watts and scaled with the assumed FTP.
    """
    context = context or DEFAULT_CONTEXT

    if isinstance(target, PowerTarget):
        bag = _encode_power(target, context, conversion_logger)
    elif isinstance(target, HeartRateTarget):
        bag = _encode_heart_rate(target, context, conversion_logger)
    elif isinstance(target, PaceTarget):
        bag = _encode_pace(target, context, conversion_logger)
    elif isinstance(target, CadenceTarget):
        bag = _encode_cadence(target, context, conversion_logger)
    elif target.type == "open":
        bag = ZwiftTargetFields()
    else:
        report_lossy(
            conversion_logger,
            f"Zwift does not support {target.type} targets; writing no target",
            step_index=context.step_index,
            target_type=target.type,
        )
        bag = ZwiftTargetFields()
    return bag.to_bag()
