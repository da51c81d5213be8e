from nvibe.shared.models.project import GeneratedFile, ProjectState, files_from_payload

__all__ = ["GeneratedFile", "ProjectState", "files_from_payload"]
