# app/database.py

from supabase import create_client, Client
from app.config import get_settings

settings = get_settings()

# Admin client (bypasses RLS - the engine reads registries across customers)
supabase_admin: Client = create_client(
    settings.supabase_url,
    settings.supabase_service_role_key
)


# ============================================
# Database helper functions
# ============================================

async def get_project(project_id: str) -> dict | None:
    """Get a project with its metadata."""
    response = (
        supabase_admin.table("projects")
        .select("id, name, customer_id, metadata")
        .eq("id", project_id)
        .execute()
    )
    return response.data[0] if response.data else None


async def get_document_line_items(document_id: str) -> list[dict]:
    """Get previously extracted line items for a document."""
    response = supabase_admin.table("documents").select("line_items").eq("id", document_id).execute()

    if not response.data:
        return []
    return response.data[0].get("line_items") or []


async def get_registry_records(
    customer_id: str = None,
    project_id: str = None,
) -> list[dict]:
    """
    Get voter registry rows.

    With a project_id only rows tied to that project are returned;
    without one, every row for the customer is returned.
    Pages through the table so large registries are read completely.
    """
    if not customer_id and not project_id:
        return []

    page_size = settings.registry_page_size
    offset = 0
    records: list[dict] = []

    while True:
        query = (
            supabase_admin.table("voter_registry")
            .select("name, name_normalized, address, city, zip, signature_reference_url")
        )
        if customer_id:
            query = query.eq("customer_id", customer_id)
        if project_id:
            query = query.eq("project_id", project_id)

        response = query.order("id").range(offset, offset + page_size - 1).execute()
        page = response.data or []
        records.extend(page)

        # Fewer rows than a full page means we've reached the end
        if len(page) < page_size:
            break

        offset += page_size

    return records


async def save_validation_result(document_id: str, payload: dict) -> dict | None:
    """Overwrite a document's validation state with the latest run."""
    response = supabase_admin.table("documents").update(payload).eq("id", document_id).execute()
    return response.data[0] if response.data else None
