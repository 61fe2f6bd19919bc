"""Load an Exercise from a two-voice standard MIDI file using mido."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

from ..model import TICKS_PER_BEAT, Exercise, Key, NoteEvent, Species, Voice
from .json_loader import RequestParseError


def _rescale(tick: int, ticks_per_beat: int) -> int:
    """Map a file tick onto the 480-per-beat grid."""
    return int(round(tick * TICKS_PER_BEAT / ticks_per_beat))


def load_midi(source: Union[str, Path], species: Union[Species, int],
              key: Optional[Key] = None, subject_above: Optional[bool] = None) -> Exercise:
    """Load an Exercise from a .mid file.

    Requires the ``mido`` package. The first note-bearing channel is the
    reference voice, the second the subject. Chords within a channel are
    reduced to their first-released note; exercises are monophonic.

    Args:
        source: Path to a .mid file.
        species: Species the subject voice is written in.

    Returns:
        An Exercise on the 480 ticks-per-beat grid.
    """
    try:
        import mido
    except ImportError as exc:
        raise ImportError(
            "mido is required for MIDI loading. Install with: pip install mido"
        ) from exc

    mid = mido.MidiFile(str(source))
    ticks_per_beat = mid.ticks_per_beat or TICKS_PER_BEAT

    channel_notes: Dict[int, List[NoteEvent]] = {}
    first_seen: Dict[int, int] = {}

    for track in mid.tracks:
        abs_tick = 0
        pending: Dict[int, Dict[int, int]] = {}  # channel -> {pitch: start_tick}
        for msg in track:
            abs_tick += msg.time
            if msg.type == "note_on" and msg.velocity > 0:
                pending.setdefault(msg.channel, {})[msg.note] = abs_tick
                first_seen.setdefault(msg.channel, abs_tick)
            elif msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0):
                start = pending.get(msg.channel, {}).pop(msg.note, None)
                if start is None:
                    continue
                start_tick = _rescale(start, ticks_per_beat)
                end_tick = _rescale(abs_tick, ticks_per_beat)
                notes = channel_notes.setdefault(msg.channel, [])
                if any(n.start_tick == start_tick for n in notes):
                    continue
                notes.append(NoteEvent(pitch=msg.note, start_tick=start_tick,
                                       duration=end_tick - start_tick))

    channels = sorted(channel_notes, key=lambda ch: (first_seen.get(ch, 0), ch))
    if len(channels) < 2:
        raise RequestParseError(f"{source}: expected two note-bearing channels, found {len(channels)}")
    ref_ch, subj_ch = channels[0], channels[1]
    return Exercise(
        reference=Voice.from_notes("reference", channel_notes[ref_ch]),
        subject=Voice.from_notes("subject", channel_notes[subj_ch]),
        species=Species(species),
        key=key,
        subject_above=subject_above,
        title=Path(source).stem,
    )
