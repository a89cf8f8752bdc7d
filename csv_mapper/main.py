from fastapi import FastAPI, Form, UploadFile, File, HTTPException
from pydantic import ValidationError

from .engine import CsvMapper
from .errors import CsvMapperError
from .models import HealthResponse, ImportResponse, ImportSummary, MappingSpec
from .transforms import BuiltinTransforms

app = FastAPI(
    title="csv-mapper",
    description="Map delimited text rows onto named records",
    version="0.1.0",
)

mapper = CsvMapper(context=BuiltinTransforms())


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/import", response_model=ImportResponse)
async def import_csv(file: UploadFile = File(...), mapping: str = Form("{}")):
    if not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=422, detail="Only CSV files are supported")

    try:
        requested = MappingSpec.model_validate_json(mapping)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid mapping: {exc.errors()[0]['msg']}")

    raw = await file.read()
    try:
        records = mapper.import_csv(raw, requested.apply, type="io")
    except (CsvMapperError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    fields = records[0].keys() if records else []
    return ImportResponse(
        records=[record.to_dict() for record in records],
        summary=ImportSummary(records=len(records), fields=fields),
    )
