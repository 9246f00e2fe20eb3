from __future__ import annotations

import io
import math
import struct
import wave

CHIME_FREQUENCY_HZ = 800
CHIME_DURATION_SECONDS = 0.1
CHIME_GAIN = 0.3
CHIME_FINAL_GAIN = 0.01


def chime_wav(
    frequency: float = CHIME_FREQUENCY_HZ,
    duration: float = CHIME_DURATION_SECONDS,
    gain: float = CHIME_GAIN,
    sample_rate: int = 8000,
) -> bytes:
    """Bipe senoidal curto (16-bit mono) com decaimento exponencial até 0.01."""
    frames = max(int(sample_rate * duration), 1)
    decay = math.log(CHIME_FINAL_GAIN / gain) / frames
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as out:
        out.setnchannels(1)
        out.setsampwidth(2)
        out.setframerate(sample_rate)
        samples = bytearray()
        for index in range(frames):
            amplitude = gain * math.exp(decay * index)
            value = amplitude * math.sin(2 * math.pi * frequency * index / sample_rate)
            samples += struct.pack("<h", int(value * 32767))
        out.writeframes(bytes(samples))
    return buffer.getvalue()
