"""Service-layer helpers used by the pipeline: reporting and exports."""

from importlib import import_module

__all__ = ["ExportStager", "ResultReporter"]


def __getattr__(name):
    if name == "ExportStager":
        return import_module(".exports", __name__).ExportStager
    if name == "ResultReporter":
        return import_module(".report", __name__).ResultReporter
    raise AttributeError(name)
