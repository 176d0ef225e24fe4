"""
PDF -> MCQ generator backend.
Run with: uvicorn pdf_mcq.main:app --reload --port 8080 (from backend/), or the pdf-mcq-server script.
"""
__version__ = "0.1.0"
