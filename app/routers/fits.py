from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from app.core.presets import resolve_formality, resolve_season
from app.schemas.fits import AnalyzeFitIn, DeleteFitOut, FitAnalysis, FitImages, OutfitRecord, UploadOut
from app.services.fits.errors import InvalidUpload, SaveFailed, UploadFailed
from app.services.fits.service import FitService, get_fit_service
from app.services.fits.types import ImageFile, SessionContext

router = APIRouter(prefix="/fits", tags=["fits"])


async def _read_image(upload: UploadFile) -> ImageFile:
    return ImageFile(filename=upload.filename or "image", content_type=upload.content_type, data=await upload.read())


@router.post("/uploads", response_model=Dict[str, str])
async def upload_fit_images(
    session_id: str = Form(...),
    top: Optional[UploadFile] = File(None),
    top_layer: Optional[UploadFile] = File(None, alias="topLayer"),
    bottom: Optional[UploadFile] = File(None),
    shoes: Optional[UploadFile] = File(None),
    accessories: Optional[UploadFile] = File(None),
    service: FitService = Depends(get_fit_service),
):
    files = {"top": top, "topLayer": top_layer, "bottom": bottom, "shoes": shoes, "accessories": accessories}
    images = {slot: await _read_image(f) for slot, f in files.items() if f is not None}
    try:
        return await service.upload_many(images, session_id)
    except InvalidUpload as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UploadFailed:
        raise HTTPException(status_code=502, detail="no images could be stored")


@router.post("/uploads/{category}", response_model=UploadOut)
async def upload_fit_image(
    category: str,
    session_id: str = Form(...),
    file: UploadFile = File(...),
    service: FitService = Depends(get_fit_service),
):
    try:
        url = await service.upload(await _read_image(file), category, session_id)
    except InvalidUpload as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UploadFailed:
        raise HTTPException(status_code=502, detail="no images could be stored")
    return UploadOut(url=url)


@router.post("/analyze", response_model=FitAnalysis)
async def analyze_fit(body: AnalyzeFitIn, service: FitService = Depends(get_fit_service)):
    ctx = SessionContext(
        session_id=body.session_id,
        season=resolve_season(body.season),
        formality=resolve_formality(body.formality),
    )
    images = FitImages.model_validate(body.model_dump(include=set(FitImages.model_fields)))
    return await service.analyze(ctx, images)


@router.post("", response_model=OutfitRecord)
async def save_fit(body: OutfitRecord, service: FitService = Depends(get_fit_service)):
    try:
        return await service.save(body)
    except SaveFailed:
        raise HTTPException(status_code=503, detail="save_unavailable")


@router.get("", response_model=List[OutfitRecord])
async def list_saved_fits(session_id: str = Query(...), service: FitService = Depends(get_fit_service)):
    return await service.fetch_all(session_id)


@router.delete("/{fit_id}", response_model=DeleteFitOut)
async def delete_fit(fit_id: str, service: FitService = Depends(get_fit_service)):
    return DeleteFitOut(id=fit_id, deleted=await service.delete(fit_id))
