"""Offline Blinn-Phong ray tracer with CPU and GPU backends.

This package renders scenes of spheres and infinite planes lit by point
lights, with hard shadows, mirror reflections and multi-sample
anti-aliasing. The same algorithm runs on two backends:
- CPU: recursive shading in Python, rows distributed across processes
- GPU: a Taichi kernel reading scene data from fixed-layout buffers

Subpackages:
    core: Vectors, rays, render configuration, integrator, progressive mode
    geometry: Sphere and plane primitives with intersection routines
    materials: Material parameters and Blinn-Phong shading
    camera: Pinhole camera with ray generation
    scene: Scene container, demo scene and the animation driver
    gpu: Buffer layout, device program and GPU renderer
    preview: PPM and animated GIF export
"""

__version__ = "0.1.0"
