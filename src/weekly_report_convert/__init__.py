"""weekly-report-convert — Turn weekly store-block reports into normalized delivery rows."""

__version__ = "0.2.0"

MAPPING_COLUMNS: dict[str, str] = {
    "code": "코드",
    "original_name": "원본 사업장명",
    "system_name": "사업장명",
}
