# app/api/v1/companies.py
import logging

from fastapi import APIRouter, Depends

from app.api.v1.auth import require_roles
from app.api.v1.params import page_params
from app.core.errors import NotFound
from app.models.common import PageParams
from app.models.company import Company, CompanyCreate, CompanyUpdate
from app.models.user import Role, User
from app.repositories import companies as companies_repo
from app.services.authorization import authorize_company_write
from app.utils.pagination import pagination_meta
from app.utils.responses import ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/companies", tags=["companies"])

employer_or_admin = require_roles(Role.EMPLOYER, Role.ADMIN)


async def _get_or_404(company_id: str) -> Company:
    company = await companies_repo.get_company(company_id)
    if company is None:
        raise NotFound("Company not found")
    return company


async def _update(company: Company, payload: CompanyUpdate, user: User) -> Company:
    authorize_company_write(user, company)
    fields = payload.model_dump(exclude_unset=True)
    if not fields:
        return company
    logger.info("Company %s updated by %s", company.id, user.id)
    return await companies_repo.update_company(company.id, fields)


@router.get("/my")
async def my_company(user: User = Depends(employer_or_admin)):
    company = await companies_repo.get_company_by_employer(user.id)
    if company is None:
        raise NotFound("You have not created a company profile yet")
    return ok("Company retrieved successfully", {"company": company})


@router.post("", status_code=201)
async def create_company(payload: CompanyCreate, user: User = Depends(employer_or_admin)):
    company = await companies_repo.create_company(payload.model_dump(exclude_none=True), employer=user.id)
    logger.info("Company %s created by %s", company.id, user.id)
    return ok("Company created successfully", {"company": company})


@router.put("/my")
async def update_my_company(payload: CompanyUpdate, user: User = Depends(employer_or_admin)):
    company = await companies_repo.get_company_by_employer(user.id)
    if company is None:
        raise NotFound("You have not created a company profile yet")
    company = await _update(company, payload, user)
    return ok("Company updated successfully", {"company": company})


@router.get("")
async def list_companies(params: PageParams = Depends(page_params)):
    companies, total = await companies_repo.list_companies(skip=params.skip, limit=params.limit)
    return ok("Companies retrieved successfully", {
        "companies": companies,
        "pagination": pagination_meta(params.page, params.limit, total),
    })


@router.get("/{company_id}")
async def get_company(company_id: str):
    company = await _get_or_404(company_id)
    return ok("Company retrieved successfully", {"company": company})


@router.put("/{company_id}")
async def update_company(company_id: str, payload: CompanyUpdate, user: User = Depends(employer_or_admin)):
    company = await _update(await _get_or_404(company_id), payload, user)
    return ok("Company updated successfully", {"company": company})


@router.delete("/{company_id}")
async def delete_company(company_id: str, user: User = Depends(employer_or_admin)):
    company = await _get_or_404(company_id)
    authorize_company_write(user, company)
    await companies_repo.delete_company(company.id)
    logger.info("Company %s deleted by %s", company.id, user.id)
    return ok("Company deleted successfully")
