"""
Judgment endpoint
"""
from fastapi import APIRouter, HTTPException
from gitrekt.core.errors import GitRektError
from gitrekt.models.verdict import Verdict
from gitrekt.schemas.schemas import JudgeRequest
from gitrekt.services.judgment_service import judgment_service

router = APIRouter()

@router.post("", response_model=Verdict)
async def judge_commit(request: JudgeRequest):
    try:
        return await judgment_service.judge(request.repo, request.sha, branch=request.branch)
    except GitRektError as e:
        raise HTTPException(e.status_code, e.message)
