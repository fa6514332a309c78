"""
Optional imports management and availability flags.

Audio I/O libraries depend on native libraries (PortAudio, libsndfile) that
may be missing on headless machines; generation and encoding never need them.
"""

import logging
from typing import Dict

from models.constants import Constants

logger = logging.getLogger(Constants.LOGGER_NAME)

HAS_SOUNDDEVICE = False
HAS_SOUNDFILE = False

SOUNDDEVICE_MODULE = None
SOUNDFILE_MODULE = None


def check_imports() -> Dict[str, bool]:
    """Check which optional dependencies are available and return status."""
    global HAS_SOUNDDEVICE, HAS_SOUNDFILE, SOUNDDEVICE_MODULE, SOUNDFILE_MODULE

    try:
        import sounddevice
        HAS_SOUNDDEVICE = True
        SOUNDDEVICE_MODULE = sounddevice
    except (ImportError, OSError) as e:
        # sounddevice raises OSError when the PortAudio library is missing
        HAS_SOUNDDEVICE = False
        logger.warning(
            f"Audio output unavailable ({e}). Install it with: pip install sounddevice"
        )

    try:
        import soundfile
        HAS_SOUNDFILE = True
        SOUNDFILE_MODULE = soundfile
    except (ImportError, OSError) as e:
        HAS_SOUNDFILE = False
        logger.warning(
            f"'soundfile' not available ({e}), WAV files will be read with scipy. "
            "Install it with: pip install soundfile"
        )

    return {
        "sounddevice": HAS_SOUNDDEVICE,
        "soundfile": HAS_SOUNDFILE,
    }


IMPORT_STATUS = check_imports()


def get_sounddevice_module():
    """Get the sounddevice module if available."""
    return SOUNDDEVICE_MODULE


def get_soundfile_module():
    """Get the soundfile module if available."""
    return SOUNDFILE_MODULE
