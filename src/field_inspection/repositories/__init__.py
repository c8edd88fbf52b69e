from field_inspection.repositories.evidence_store import EvidenceStore

__all__ = ["EvidenceStore"]
