from typing import List

from fastapi import APIRouter, Depends

from storefront.api.deps import get_current_user, get_gateway
from storefront.data.gateway import Gateway
from storefront.domain.models import User
from storefront.domain.schemas import AddressIn, AddressOut
from storefront.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.get("", response_model=List[AddressOut])
def list_addresses(user: User = Depends(get_current_user), gateway: Gateway = Depends(get_gateway)):
    return AddressService(gateway).list_addresses(user.id)


@router.post("", response_model=AddressOut, status_code=201)
def create_address(
    payload: AddressIn,
    user: User = Depends(get_current_user),
    gateway: Gateway = Depends(get_gateway),
):
    return AddressService(gateway).create_address(user.id, payload.model_dump())


@router.post("/{address_id}/default", response_model=AddressOut)
def set_default(address_id: str, user: User = Depends(get_current_user), gateway: Gateway = Depends(get_gateway)):
    return AddressService(gateway).set_default(address_id, user.id)


@router.delete("/{address_id}", status_code=204)
def delete_address(address_id: str, user: User = Depends(get_current_user), gateway: Gateway = Depends(get_gateway)):
    AddressService(gateway).delete_address(address_id, user.id)
