from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray

PcmSamples: TypeAlias = NDArray[np.int16]


class ScanMode(str, Enum):
    structural = "structural"
    scan = "scan"


class OutputContainer(str, Enum):
    raw = "raw"
    wav = "wav"


@dataclass
class ConversionOptions:
    scan_mode: ScanMode = ScanMode.structural
    container: OutputContainer = OutputContainer.raw
    legacy_segment0: bool = False
