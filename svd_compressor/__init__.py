"""SVD-сжатие изображений по матрице яркости"""

from .errors import CompressionError, InvalidDimensions, InvalidRank, NumericalFailure
from .pipeline import CompressionPipeline, CompressionResult, Stage
from .raster import Raster, write_raster
from .session import CompressionSession
from .svd import Decomposition, decompose

__version__ = "1.2.0"
