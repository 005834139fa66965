"""Small helpers shared across rastermap."""
from . import config

settings = config.settings


def vprint(text, level=0):
    """Print progress text if verbose output is enabled.

    Parameters
    ----------
    text : str
        Text to print.
    level : int, optional
        Minimum verbosity needed for the text to be shown, by default 0.
    """
    verbose = settings.get("verbose", False)
    if verbose is True:
        verbose = 1
    if verbose and int(verbose) > level:
        print(text)
