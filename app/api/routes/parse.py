from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app.ai.extractor import StructuredExtractor
from app.api.dependencies import get_extractor
from app.core.document_converter import SUPPORTED_CONTENT_TYPES
from app.core.resume_parser import parse
from app.core.schemas import ParsedResume

router = APIRouter(tags=["parse"])

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt", ".md")


@router.post(
    "/parse",
    response_model=ParsedResume,
    summary="Parse Resume",
    description="Extract skills, experience, projects and education from a resume file (PDF, DOCX or TXT).",
    responses={
        200: {
            "description": "Successfully parsed resume",
            "content": {
                "application/json": {
                    "example": {
                        "skills": ["Python", "FastAPI", "PostgreSQL"],
                        "experience": [
                            {
                                "title": "Senior Engineer",
                                "company": "Tech Corp",
                                "location": "San Francisco, CA",
                                "start_date": "2020-01",
                                "end_date": None,
                                "description": "Built the billing platform",
                            }
                        ],
                        "projects": [],
                        "education": [],
                        "raw_text": "...",
                    }
                }
            },
        },
        400: {"description": "Empty file uploaded"},
        415: {"description": "Unsupported file format"},
    },
)
async def parse_resume(
    file: UploadFile = File(..., description="Resume file (PDF, DOCX or TXT format)"),
    extractor: Optional[StructuredExtractor] = Depends(get_extractor),
):
    """
    Parse a resume file.

    **Supported formats:**
    - PDF (.pdf) - text layer only
    - DOCX (.docx)
    - TXT (.txt, .md)

    When an external provider is configured its structured extraction is
    preferred; education always comes from the heuristic parser.
    """
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Empty file uploaded.")

    filename = (file.filename or "").lower()
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type not in SUPPORTED_CONTENT_TYPES and not filename.endswith(SUPPORTED_EXTENSIONS):
        raise HTTPException(status_code=415, detail=f"Unsupported content type: {file.content_type}")

    return await parse(raw, extractor=extractor, content_type=content_type, filename=filename)
