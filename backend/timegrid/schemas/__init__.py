from timegrid.schemas.conflict import ConflictEntry, ConflictMap, ConflictReport, ConflictType  # noqa: F401
from timegrid.schemas.edit import (  # noqa: F401
    CellRef,
    ChangeDescriptor,
    EditDecision,
    GestureRejection,
    MoveChange,
    SwapChange,
)
from timegrid.schemas.timetable import (  # noqa: F401
    Batch,
    ClassAssignment,
    Faculty,
    FacultyAvailability,
    GeneratedTimetable,
    Room,
    Subject,
    Substitution,
    TimetableFeedback,
    TimetableStatus,
)
