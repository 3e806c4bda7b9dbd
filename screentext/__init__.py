"""
ScreenText Editor - Modules
스크린샷 속 단어 교체: 배경 복원 + 글꼴 크기/위치 보정
"""
from .config import (
    CONFIG,
    EditorOptions,
    setup_logging,
)

from .errors import (
    ScreenTextError,
    InvalidInputError,
    RecognitionUnavailableError,
    RecognitionFailureError,
    SamplingFailureError,
    ReconstructionFailureError,
    WordNotFoundError,
)

from .models import (
    BBox,
    Word,
    BorderSample,
    SolidBackground,
    GradientBackground,
    TexturedBackground,
    BackgroundBoxStyle,
    EditStyle,
    ReplacementHistoryEntry,
    ReplacementHistory,
)

from .color_sampler import (
    ColorSampler,
    rgb_to_hex,
    hex_to_rgb,
    parse_color,
    validate_color,
)

from .reconstructor import (
    BackgroundReconstructor,
    LegacyEraser,
    WhiteFillEraser,
    ReconstructionResult,
    create_eraser,
)

from .text_renderer import (
    TextRenderer,
    TextMetrics,
    OverlayRenderer,
)

from .fitting import (
    FontCalibrator,
    FontFit,
    TextPlacer,
)

from .registry import (
    WordRegistry,
)

from .recognition import (
    OCREngine,
    RecognizedWord,
    RecognitionResult,
)

from .ingest import (
    validate_upload,
    decode_image,
    load_upload,
)

from .exporter import (
    PNGExporter,
)

from .compositor import (
    Compositor,
    SessionState,
    ColorPick,
)

__all__ = [
    # Config
    'CONFIG',
    'EditorOptions',
    'setup_logging',

    # Errors
    'ScreenTextError',
    'InvalidInputError',
    'RecognitionUnavailableError',
    'RecognitionFailureError',
    'SamplingFailureError',
    'ReconstructionFailureError',
    'WordNotFoundError',

    # Models
    'BBox',
    'Word',
    'BorderSample',
    'SolidBackground',
    'GradientBackground',
    'TexturedBackground',
    'BackgroundBoxStyle',
    'EditStyle',
    'ReplacementHistoryEntry',
    'ReplacementHistory',

    # Color
    'ColorSampler',
    'rgb_to_hex',
    'hex_to_rgb',
    'parse_color',
    'validate_color',

    # Reconstruction
    'BackgroundReconstructor',
    'LegacyEraser',
    'WhiteFillEraser',
    'ReconstructionResult',
    'create_eraser',

    # Rendering
    'TextRenderer',
    'TextMetrics',
    'OverlayRenderer',

    # Fitting
    'FontCalibrator',
    'FontFit',
    'TextPlacer',

    # Registry
    'WordRegistry',

    # OCR
    'OCREngine',
    'RecognizedWord',
    'RecognitionResult',

    # Ingest / Export
    'validate_upload',
    'decode_image',
    'load_upload',
    'PNGExporter',

    # Session
    'Compositor',
    'SessionState',
    'ColorPick',
]
