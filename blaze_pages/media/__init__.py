"""Media transcoding: responsive image variants, video bundles, GIF detection."""

from .ffmpeg import FfmpegRunner, ProcessResult
from .gif import count_image_descriptors, is_animated_gif
from .models import (
    IMAGE_EXTENSIONS,
    VIDEO_EXTENSIONS,
    ImageFamily,
    ImageOutcome,
    MediaOutcome,
    MediaStatus,
    MediaVariant,
    MediaVariantSet,
    PassthroughOutcome,
    VideoOutcome,
    VideoSource,
)
from .transcoder import MediaTranscoder, clamp_even_width, variant_widths

__all__ = [
    "IMAGE_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "FfmpegRunner",
    "ImageFamily",
    "ImageOutcome",
    "MediaOutcome",
    "MediaStatus",
    "MediaTranscoder",
    "MediaVariant",
    "MediaVariantSet",
    "PassthroughOutcome",
    "ProcessResult",
    "VideoOutcome",
    "VideoSource",
    "clamp_even_width",
    "count_image_descriptors",
    "is_animated_gif",
    "variant_widths",
]
