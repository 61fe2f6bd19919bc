"""Tests for the MIDI loader."""

import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from scripts.species_checker.loaders.json_loader import RequestParseError
from scripts.species_checker.model import Species


class TestMidiLoader(unittest.TestCase):
    """Test MIDI loading with a mocked mido module."""

    def _make_mock_midi(self, ticks_per_beat=480, subject=True):
        """Build a mock mido.MidiFile: whole-note cantus on ch0, half notes on ch1."""
        mock_midi = MagicMock()
        mock_midi.ticks_per_beat = ticks_per_beat
        bar = ticks_per_beat * 4
        half = ticks_per_beat * 2
        msgs = [
            MagicMock(type="program_change", channel=0, program=19, time=0),
            # Cantus: C4 then D4, whole notes, attacked first
            MagicMock(type="note_on", channel=0, note=60, velocity=80, time=0),
        ]
        if subject:
            msgs += [
                # Subject: G4 A4 | B4 (half, half, whole)
                MagicMock(type="note_on", channel=1, note=67, velocity=80, time=0),
                MagicMock(type="note_off", channel=1, note=67, velocity=0, time=half),
                MagicMock(type="note_on", channel=1, note=69, velocity=80, time=0),
                MagicMock(type="note_on", channel=1, note=69, velocity=0, time=half),
                MagicMock(type="note_off", channel=0, note=60, velocity=0, time=0),
                MagicMock(type="note_on", channel=0, note=62, velocity=80, time=0),
                MagicMock(type="note_on", channel=1, note=71, velocity=80, time=0),
                MagicMock(type="note_off", channel=1, note=71, velocity=0, time=bar),
                MagicMock(type="note_off", channel=0, note=62, velocity=0, time=0),
            ]
        else:
            msgs += [MagicMock(type="note_off", channel=0, note=60, velocity=0, time=bar)]
        mock_track = MagicMock()
        mock_track.__iter__ = lambda self: iter(msgs)
        mock_midi.tracks = [mock_track]
        return mock_midi

    @patch.dict("sys.modules", {"mido": MagicMock()})
    def test_load_midi(self):
        import sys as _sys
        mock_mido = _sys.modules["mido"]
        mock_mido.MidiFile.return_value = self._make_mock_midi()

        from scripts.species_checker.loaders.midi_loader import load_midi
        ex = load_midi("/fake/exercise.mid", Species.SECOND)

        self.assertEqual([n.pitch for n in ex.reference.notes], [60, 62])
        self.assertEqual([n.pitch for n in ex.subject.notes], [67, 69, 71])
        self.assertEqual(ex.subject.notes[1].start_tick, 960)
        self.assertEqual(ex.subject.notes[2].duration, 1920)
        self.assertEqual(ex.species, Species.SECOND)
        self.assertEqual(ex.title, "exercise")

    @patch.dict("sys.modules", {"mido": MagicMock()})
    def test_rescales_ticks(self):
        import sys as _sys
        mock_mido = _sys.modules["mido"]
        mock_mido.MidiFile.return_value = self._make_mock_midi(ticks_per_beat=96)

        from scripts.species_checker.loaders.midi_loader import load_midi
        ex = load_midi("/fake/exercise.mid", 2)

        self.assertEqual(ex.subject.notes[1].start_tick, 960)
        self.assertEqual(ex.reference.notes[1].duration, 1920)

    @patch.dict("sys.modules", {"mido": MagicMock()})
    def test_single_channel_rejected(self):
        import sys as _sys
        mock_mido = _sys.modules["mido"]
        mock_mido.MidiFile.return_value = self._make_mock_midi(subject=False)

        from scripts.species_checker.loaders.midi_loader import load_midi
        with self.assertRaises(RequestParseError):
            load_midi("/fake/exercise.mid", 1)

    def test_import_error(self):
        """Ensure ImportError when mido is not available."""
        with patch.dict("sys.modules", {"mido": None}):
            import importlib
            from scripts.species_checker.loaders import midi_loader
            importlib.reload(midi_loader)
            with self.assertRaises(ImportError):
                midi_loader.load_midi("/fake/exercise.mid", 1)


if __name__ == "__main__":
    unittest.main()
