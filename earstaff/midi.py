"""Audio playback of pitches over MIDI.

The engine only asks for pitches to be played; this module turns those
requests into note messages for a MIDI output port.
"""

from __future__ import annotations

import logging
from abc import ABCMeta, abstractmethod
from typing import List, Optional, Sequence

import mido
from mido.frozen import FrozenMessage
from mido.ports import BaseOutput

from earstaff import constants
from earstaff.base import Closeable, Resettable
from earstaff.pitch import Pitch


def volume_to_velocity(volume: float) -> int:
    """Map a 0-1 volume onto a note velocity.

    Args:
        volume: Playback volume, clamped to 0-1.

    Returns:
        A velocity between the audible minimum and 127.
    """
    volume = max(0.0, min(1.0, volume))
    span = constants.MAX_VELOCITY - constants.MIN_VELOCITY
    return constants.MIN_VELOCITY + int(round(volume * span))


class MidiSink(metaclass=ABCMeta):
    """Abstract base class for MIDI output sinks."""

    @abstractmethod
    def send_msg(self, msg: FrozenMessage) -> None:
        """Send a MIDI message.

        Args:
            msg: The MIDI message to send.
        """
        raise NotImplementedError()


class MidiOutput(MidiSink, Resettable, Closeable):
    """A mido output port used as a sink."""

    @classmethod
    def open(cls, out_port_name: str, virtual: bool = False) -> MidiOutput:
        """Open a MIDI output port.

        Args:
            out_port_name: The name of the MIDI port to open.
            virtual: Whether to create a virtual MIDI port.

        Returns:
            A new MidiOutput connected to the port.
        """
        out_port = mido.open_output(out_port_name, virtual=virtual)
        logging.info("Opened MIDI output %s", out_port_name)
        return cls(out_port_name=out_port_name, out_port=out_port)

    def __init__(self, out_port_name: str, out_port: BaseOutput) -> None:
        self._out_port_name = out_port_name
        self._out_port = out_port

    def reset(self) -> None:
        """Reset the MIDI output port."""
        self._out_port.reset()

    def close(self) -> None:
        """Close the MIDI output port."""
        self._out_port.close()

    def send_msg(self, msg: FrozenMessage) -> None:
        logging.debug("Sending message to %s: %s", self._out_port_name, msg)
        self._out_port.send(msg)


class Playback(metaclass=ABCMeta):
    """Audio surface the controller asks to sound pitches."""

    @abstractmethod
    def play(self, pitches: Sequence[Pitch]) -> None:
        """Sound the given pitches together, replacing anything still sounding."""
        raise NotImplementedError()

    @abstractmethod
    def stop(self) -> None:
        """Silence everything."""
        raise NotImplementedError()


class MidiPlayback(Playback):
    """Plays pitches as note messages on a single MIDI channel.

    Notes keep sounding until the next ``play`` or ``stop``, which first
    release them with note-off messages.
    """

    def __init__(
        self,
        sink: MidiSink,
        channel: int = constants.DEFAULT_MIDI_CHANNEL,
        volume: float = constants.DEFAULT_VOLUME,
    ) -> None:
        """Initialize playback.

        Args:
            sink: Where messages are sent.
            channel: MIDI channel (0-15).
            volume: Initial volume (0-1).
        """
        self._sink = sink
        self._channel = channel
        self._velocity = volume_to_velocity(volume)
        self._sounding: List[int] = []

    @property
    def velocity(self) -> int:
        return self._velocity

    def set_volume(self, volume: float) -> None:
        self._velocity = volume_to_velocity(volume)

    def _note_msg(self, msg_type: str, note: int, velocity: Optional[int] = None) -> FrozenMessage:
        if velocity is None:
            return FrozenMessage(msg_type, channel=self._channel, note=note)
        return FrozenMessage(msg_type, channel=self._channel, note=note, velocity=velocity)

    def play(self, pitches: Sequence[Pitch]) -> None:
        self.stop()
        for pitch in pitches:
            note = pitch.midi
            if not 0 <= note <= 127 or note in self._sounding:
                logging.debug("Skipping unplayable pitch %s", pitch)
                continue
            self._sink.send_msg(self._note_msg("note_on", note, self._velocity))
            self._sounding.append(note)

    def stop(self) -> None:
        for note in self._sounding:
            self._sink.send_msg(self._note_msg("note_off", note))
        self._sounding.clear()
