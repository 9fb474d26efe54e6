from odatastitch._version import VERSION, __version__


def run_comparison(*args, **kwargs):
    from odatastitch.compare.comparator import run_comparison as _run_comparison

    return _run_comparison(*args, **kwargs)


__all__ = ["VERSION", "__version__", "run_comparison"]
