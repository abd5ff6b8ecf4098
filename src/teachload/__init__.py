__version__ = "0.1.0"
from .errors import (
    AmbiguousCreditError,
    DataQualityError,
    IntegrityError,
    MissingCreditError,
    NameSplitError,
    PipelineExecutionError,
)
from .fixes import Fixes, load_fixes
from .pipeline import PipelineOutput, StepPipeline, check_integrity
from .transforms import (
    attach_teaching_share,
    build_credit_table,
    build_name_lookup,
    normalize_graduate_names,
    normalize_undergrad_names,
    reconcile_graduate,
    split_instructor_columns,
    summarize_instructors,
)
from .writer import write_workbook
