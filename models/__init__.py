from models.log_record import LogInput, LogRecord
from models.project import Project, Stream

__all__ = ["LogInput", "LogRecord", "Project", "Stream"]
