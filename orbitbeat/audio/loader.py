"""Audio file decoding into PCM buffers."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Union

import librosa
import numpy as np

from orbitbeat.analysis.models import PcmBuffer


def load_pcm(file_path_or_buffer: Union[str, Path, BytesIO]) -> PcmBuffer:
    """Decode an audio file or buffer, keeping every channel.

    Parameters
    ----------
    file_path_or_buffer:
        Path to an audio file or a BytesIO buffer containing audio data.

    Returns
    -------
    PcmBuffer
        All channels at the file's native sample rate.
    """
    audio, sample_rate = librosa.load(file_path_or_buffer, sr=None, mono=False)
    audio = np.atleast_2d(audio)
    if audio.shape[-1] == 0:
        raise ValueError("Decoded audio contains no samples")
    return PcmBuffer(channels=tuple(audio), sample_rate=int(sample_rate))
