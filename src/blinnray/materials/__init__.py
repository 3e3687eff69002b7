"""Materials module.

Components:
    material: Material parameters and the Blinn-Phong shading model

Every surface carries one Material: a base color with diffuse, specular,
shininess and reflectivity coefficients. Shading of one light at a hit point
is the sum of a Lambert diffuse term and a Blinn-Phong specular term with a
white highlight, both scaled by the light intensity.
"""

from .material import Material, blinn_phong

__all__ = [
    "Material",
    "blinn_phong",
]
