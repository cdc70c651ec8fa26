from __future__ import annotations

from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from implements.analysis import analyze
from implements.config import BuildContext, TieBreak
from implements.errors import UsageError
from implements.model import Report


app = FastAPI(title="Implements")


class ImplementsRequest(BaseModel):
	types: str = ""
	interfaces: str = "std"
	reverse: bool = False
	tags: List[str] = []
	tie_break: TieBreak = TieBreak.PREFER_NON_MAIN
	goroot: Optional[str] = None
	gopath: Optional[List[str]] = None


def build_context(req: ImplementsRequest) -> BuildContext:
	return BuildContext.from_env(
		goroot=req.goroot,
		gopath=req.gopath,
		build_tags=req.tags,
		tie_break=req.tie_break,
	)


@app.post("/implements", response_model=Report)
def implements(req: ImplementsRequest) -> Report:
	context = build_context(req)
	try:
		return analyze(context, types=req.types, interfaces=req.interfaces, reverse=req.reverse)
	except UsageError as e:
		raise HTTPException(status_code=400, detail=str(e))