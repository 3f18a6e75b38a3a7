# Public API of the core package (re-export)
from .errors import (
    MomentsError,
    InvalidRange,
    InvalidThreshold,
    InvalidGeometry,
    CalibrationError,
    DegenerateCalibration,
    InsufficientCalibrationPoints,
)
from .calibration import (
    CalibrationMode,
    CalibrationModel,
    fit_calibration,
    resolve_coefficients,
    to_density,
    clamp_density,
)
from .params import (
    Geometry,
    ThresholdRange,
    Params,
    CalibrationSettings,
)
from .moments import (
    MomentTensor,
    SliceMoments,
    accumulate_slice,
)
from .principal import (
    PrincipalMoments,
    principal_moments,
    wrap_half_turn,
)
from .series import (
    SliceRecord,
    SeriesResult,
    validate,
    iter_series,
    compute_series,
)
from .io_utils import (
    read_stack,
    dump_tiff_metadata_text,
    parse_unit_from_text,
    pixel_size_from_tiff,
)

__all__ = [
    # errors
    "MomentsError", "InvalidRange", "InvalidThreshold", "InvalidGeometry",
    "CalibrationError", "DegenerateCalibration", "InsufficientCalibrationPoints",
    # calibration
    "CalibrationMode", "CalibrationModel", "fit_calibration", "resolve_coefficients",
    "to_density", "clamp_density",
    # params / config
    "Geometry", "ThresholdRange", "Params", "CalibrationSettings",
    # moments
    "MomentTensor", "SliceMoments", "accumulate_slice",
    "PrincipalMoments", "principal_moments", "wrap_half_turn",
    # series driver
    "SliceRecord", "SeriesResult", "validate", "iter_series", "compute_series",
    # io / meta
    "read_stack", "dump_tiff_metadata_text", "parse_unit_from_text", "pixel_size_from_tiff",
]
