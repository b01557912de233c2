from smart_apply.core.tools.document_extractor import DocumentExtractor, resolve_mime_type

__all__ = ["DocumentExtractor", "resolve_mime_type"]
