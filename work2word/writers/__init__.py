from work2word.writers.docx_writer import DocxWriter
from work2word.writers.pdf_writer import PdfWriter

__all__ = ["DocxWriter", "PdfWriter"]
