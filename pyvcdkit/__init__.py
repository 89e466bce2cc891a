"""
Pyvcdkit is a pure python library to read the UDF file system of disk
images, along with a scheduler that runs one operation over items
collected from many callers.
"""
import logging

from .udfreader import ImageReader, open_image  # NOQA

logging.getLogger(__name__).addHandler(logging.NullHandler())
