"""synthstream -- live OHLC candles combined through arithmetic formulas."""

__version__ = "0.1.0"
