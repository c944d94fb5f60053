"""Ошибки ядра сжатия"""


class CompressionError(Exception):
    """Базовая ошибка конвейера SVD-сжатия"""


class InvalidDimensions(CompressionError, ValueError):
    """Пустой или некорректный растр / матрица"""


class InvalidRank(CompressionError, ValueError):
    """k <= 0 или k не целое"""


class NumericalFailure(CompressionError, ArithmeticError):
    """SVD не сошлось или на входе NaN / inf"""
