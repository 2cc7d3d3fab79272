"""
Guardaio: media analysis orchestration core for deepfake detection.

Turns a selected file (or a queue of files) into a tracked analysis job,
reconciles simulated progress with the real backend result, and fans out
side effects (history, sound, notification, sharing) once per finished job.
"""

__version__ = "0.1.0"
