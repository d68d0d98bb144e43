"""Vehicle Registration OCR.

Reads photographed or scanned Vietnamese vehicle registration
certificates with Tesseract OCR and OpenCV preprocessing, and extracts
the structured fields used to pre-fill a registration form.
"""

__version__ = "1.0.0"
