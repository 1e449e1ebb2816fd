# -*- coding: utf-8 -*-
# Gamut: Geometry of RGB colour spaces in perceptual colour models.
#
# Copyright (c) 2026 opticsWolf
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Project metadata for Gamut.
"""

from typing import Final

# Metadata Definitions
__title__: Final[str] = "Gamut"
__description__: Final[str] = (
    "Colour-space transform graph and boundary-lattice geometry engine "
    "for visualising RGB gamuts in XYZ, xyY, CIELUV and LCHuv."
)
__version__: Final[str] = "0.1.0"
__author__: Final[str] = "opticsWolf"
__license__: Final[str] = "LGPL-3.0-or-later"
__copyright__: Final[str] = "Copyright (c) 2026 opticsWolf"

def metadata_summary() -> dict[str, str]:
    """Returns a dictionary of project metadata stamped onto cache records."""
    return {
        "title": __title__,
        "version": __version__,
        "license": __license__,
    }
