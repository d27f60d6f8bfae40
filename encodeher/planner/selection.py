"""
Default stream selection heuristics.

Picks the video, audio and subtitle streams an autopack job renders by
default, and the candidate sets for extraction and audio renditions. The
subtitle heuristics (sign/song title exclusion, longest decoded track wins)
are deliberately approximate: they usually find the full dialogue track in a
typical multi-subtitle release, and nothing more is promised.
"""

from typing import Awaitable, Callable, Optional, Sequence

from ..models import AudioTrack, Stream, SubtitleTrack
from ..utils import (
    EncodeherError,
    NoAudioStream,
    NoVideoStream,
    get_logger,
)

logger = get_logger(__name__)

ASS_CODEC = "ass"
FONT_CODECS = frozenset({"otf", "ttf"})
SIGN_SONG_MARKERS = ("signs", "songs")

# Fallback labels, applied only here
UNKNOWN_LANGUAGE_KEY = "???"
UNKNOWN_AUDIO_LANGUAGE = "unk"
UNDEFINED_LANGUAGE = "und"

LengthProbe = Callable[[int], Awaitable[int]]


def video_stream(streams: Sequence[Stream]) -> Stream:
    """
    Get the first video stream.

    Raises:
        NoVideoStream: If the source has none
    """
    for stream in streams:
        if stream.is_video:
            return stream
    raise NoVideoStream("No video streams")


def audio_stream(streams: Sequence[Stream], lang: str = "jpn") -> Stream:
    """
    Get the default audio stream.

    Streams tagged with `lang` are preferred; without any, every audio stream
    is a candidate. Among candidates the first with the default disposition
    wins, otherwise the first candidate.

    Raises:
        NoAudioStream: If the source has none
    """
    audio = all_audio(streams)
    if not audio:
        raise NoAudioStream("No audio streams")

    with_lang = [s for s in audio if s.language == lang]
    remaining = with_lang or audio

    return next((s for s in remaining if s.is_default), remaining[0])


def _is_sign_or_song(stream: Stream) -> bool:
    title = (stream.title or "").lower()
    return any(marker in title for marker in SIGN_SONG_MARKERS)


async def subtitle_stream(
    streams: Sequence[Stream],
    lang: str = "eng",
    get_length: Optional[LengthProbe] = None,
    allow_undefined_language: bool = True,
    exclude_signs_and_songs: bool = True,
) -> Optional[Stream]:
    """
    Get the default subtitle stream, or None.

    Args:
        streams: All probed streams
        lang: Preferred subtitle language
        get_length: Measures the decoded text size of a stream by index
        allow_undefined_language: Use "und"/untagged tracks when none match `lang`
        exclude_signs_and_songs: Drop tracks whose title mentions signs or songs

    Returns:
        Selected stream, or None if no candidate is left
    """
    subtitles = ass_subtitles(streams)
    if not subtitles:
        return None

    lang_match = [s for s in subtitles if s.language == lang]
    if not lang_match and allow_undefined_language:
        candidates = [s for s in subtitles if s.language in (UNDEFINED_LANGUAGE, None)]
    else:
        candidates = lang_match

    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    if exclude_signs_and_songs:
        candidates = [s for s in candidates if not _is_sign_or_song(s)]

    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    if get_length is None:
        logger.warning("Several subtitle candidates and no length probe; selecting none")
        return None

    # The tie-break measures every advanced subtitle stream, not just the survivors
    try:
        longest: Optional[Stream] = None
        longest_length = -1
        for stream in subtitles:
            length = await get_length(stream.index)
            if length > longest_length:
                longest, longest_length = stream, length
    except EncodeherError as e:
        logger.error(f"Error getting subtitle stream length: {e}")
        return None

    return longest


def unique_language_audio(streams: Sequence[Stream], default: Stream) -> list[Stream]:
    """
    Get one audio stream per language.

    The default stream always holds its language's slot; the remaining
    languages keep the first stream seen, in source order.
    """
    by_language: dict[str, Stream] = {
        default.language or UNKNOWN_LANGUAGE_KEY: default,
    }
    for stream in all_audio(streams):
        by_language.setdefault(stream.language or UNKNOWN_LANGUAGE_KEY, stream)

    return list(by_language.values())


def all_subtitles(streams: Sequence[Stream]) -> list[Stream]:
    return [s for s in streams if s.is_subtitle]


def all_audio(streams: Sequence[Stream]) -> list[Stream]:
    return [s for s in streams if s.is_audio]


def ass_subtitles(streams: Sequence[Stream]) -> list[Stream]:
    """Advanced SubStation Alpha subtitle streams, the extraction candidates."""
    return [s for s in streams if s.is_subtitle and s.codec_name == ASS_CODEC]


def supported_fonts(streams: Sequence[Stream]) -> list[Stream]:
    """Attachments in a font format the player can load."""
    return [s for s in streams if s.codec_name in FONT_CODECS]


def subtitle_filter_index(streams: Sequence[Stream], selected: Optional[Stream]) -> Optional[int]:
    """
    Position of the selected subtitle among all subtitle streams.

    ffmpeg's subtitles filter addresses tracks as `si=<n>`, counting subtitle
    streams only, not global stream indices.
    """
    if selected is None:
        return None
    for position, stream in enumerate(all_subtitles(streams)):
        if stream.index == selected.index:
            return position
    return None


def describe_subtitle(stream: Stream) -> SubtitleTrack:
    """Resolve display name and language label of an extractable subtitle stream."""
    lang = stream.language or UNKNOWN_LANGUAGE_KEY
    name = stream.title if stream.title is not None else f"Subtitles #{stream.index} ({lang})"
    return SubtitleTrack(stream=stream, name=name, lang=lang)


def describe_audio(stream: Stream, default: Stream) -> AudioTrack:
    """Resolve the rendition language label of an audio stream."""
    return AudioTrack(
        stream=stream,
        lang=stream.language or UNKNOWN_AUDIO_LANGUAGE,
        is_default=stream.index == default.index,
    )
