# Copyright (C) 2026  Chris Lalancette <clalancette@gmail.com>

# This library is free software; you can redistribute it and/or
# modify it under the terms of the GNU Lesser General Public
# License as published by the Free Software Foundation;
# version 2.1 of the License.

# This library is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.

# You should have received a copy of the GNU Lesser General Public
# License along with this library; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301  USA

"""Contains exceptions for PyVcdKit."""


class PyVcdKitException(Exception):
    """The custom Exception class for PyVcdKit."""
    def __init__(self, msg):
        # type: (str) -> None
        Exception.__init__(self, msg)


class PyVcdKitInvalidImage(PyVcdKitException):
    """The custom Exception class for invalid or unsupported disk images."""
    def __init__(self, msg):
        # type: (str) -> None
        PyVcdKitException.__init__(self, msg)


class PyVcdKitUnexpectedEOF(PyVcdKitInvalidImage):
    """
    The custom Exception class for data that ends before a structure it
    should contain.
    """
    def __init__(self, msg='unexpected end of data'):
        # type: (str) -> None
        PyVcdKitInvalidImage.__init__(self, msg)


class PyVcdKitInvalidInput(PyVcdKitException):
    """The custom Exception class for invalid input to PyVcdKit."""
    def __init__(self, msg):
        # type: (str) -> None
        PyVcdKitException.__init__(self, msg)


class PyVcdKitInternalError(PyVcdKitException):
    """The custom Exception class for internal errors in PyVcdKit."""
    def __init__(self, msg):
        # type: (str) -> None
        PyVcdKitException.__init__(self, msg)
