from .context import (
    STEP_DEPTH,
    TEST_INFO,
    Annotation,
    Attachment,
    StepRecord,
    TestInfo,
    get_test_info,
    step_depth_scope,
    test_info_scope,
)

__all__ = [
    "Annotation",
    "Attachment",
    "STEP_DEPTH",
    "StepRecord",
    "TEST_INFO",
    "TestInfo",
    "get_test_info",
    "step_depth_scope",
    "test_info_scope",
]
