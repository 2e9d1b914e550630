# tests/test_documents.py
import json
import os
from datetime import datetime

from docx import Document
from docx.oxml import OxmlElement

from database import tables
from modules.documents import docx_generator
from modules.documents.quantity import build_quantity_placeholders
from modules.documents.services import build_merge_data, case_variants
from modules.field_schema.models import FieldSchema

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _create_template(client, name="Наказ", **extra):
    body = {"template_name": name, "template_type": "наказ", **extra}
    response = client.post("/api/templates", json=body)
    assert response.status_code == 201, response.text
    return response.json()["template_id"]


def _upload(client, template_id, content, filename="t.docx"):
    return client.post(f"/api/templates/{template_id}/upload", files={"file": (filename, content, DOCX_TYPE)})


def _texts(path):
    return [p.text for p in Document(path).paragraphs]


# -------------------------------------------------
# DOCX helpers
# -------------------------------------------------

def test_extract_placeholders_across_runs(tmp_path, docx_factory):
    path = tmp_path / "t.docx"
    path.write_bytes(docx_factory("Шановний {last_name} {first_name}", "{last_name}, {bad-name}", split_runs=True))

    assert docx_generator.extract_placeholders(str(path)) == ["first_name", "last_name"]


def test_generate_docx_fills_split_runs(tmp_path, docx_factory):
    template = tmp_path / "t.docx"
    template.write_bytes(docx_factory("Привіт, {name}! {missing}.", "без змін", split_runs=True))
    output = tmp_path / "out" / "r.docx"

    docx_generator.generate_docx(str(template), {"name": "Олено"}, str(output))

    assert _texts(output) == ["Привіт, Олено! .", "без змін"]


def test_generate_docx_renders_hyperlink_text_once(tmp_path):
    document = Document()
    paragraph = document.add_paragraph()
    paragraph.add_run("Шановний {last_name}, ")
    link_run = OxmlElement("w:r")
    link_text = OxmlElement("w:t")
    link_text.text = "{first_name}"
    link_run.append(link_text)
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.append(link_run)
    paragraph._p.append(hyperlink)
    template = tmp_path / "link.docx"
    document.save(str(template))
    output = tmp_path / "out.docx"

    assert docx_generator.extract_placeholders(str(template)) == ["first_name", "last_name"]
    docx_generator.generate_docx(str(template), {"last_name": "Коваль", "first_name": "Іван"}, str(output))

    rendered = Document(str(output)).paragraphs[0]
    assert rendered.text == "Шановний Коваль, Іван"
    assert rendered.hyperlinks[0].text == "Іван"


def test_case_variants():
    assert case_variants({"city": "київ"}) == {"city_upper": "КИЇВ", "city_cap": "Київ"}


def test_merge_data_has_specials(db):
    data = build_merge_data(db, {"last_name": "бойко"}, now=datetime(2024, 3, 5, 9, 7))

    assert data["current_date"] == "05.03.2024"
    assert data["current_datetime"] == "05.03.2024 09:07"
    assert data["last_name_cap"] == "Бойко"
    assert data["current_date_upper"] == "05.03.2024"


def test_quantity_placeholders():
    employees = [
        {"employment_status": "Працює", "gender": "Жіноча", "fit_status": "Придатний"},
        {"employment_status": "Працює", "gender": "Чоловіча", "fit_status": "Непридатний"},
        {"employment_status": "Відпустка", "gender": "Жіноча", "fit_status": "Придатний"},
        {"employment_status": "Звільнений", "gender": "Чоловіча", "fit_status": ""},
    ]

    result = build_quantity_placeholders(FieldSchema([]), employees)

    assert result["f_gender_quantity"] == "4"
    assert result["f_gender_option2_quantity"] == "2"
    assert result["f_employment_status_option1_quantity"] == "2"
    assert result["present_quantity"] == "2"
    assert result["absent_quantity"] == "1"
    assert result["f_fit_status_present_quantity"] == "2"
    assert result["f_fit_status_present_option1_quantity"] == "1"
    assert result["f_fit_status_present_option3_quantity"] == "1"


# -------------------------------------------------
# Templates API
# -------------------------------------------------

def test_template_crud(client, db):
    template_id = _create_template(client, description="опис", is_general=True)
    template = client.get(f"/api/templates/{template_id}").json()["template"]
    assert template["is_general"] == "yes"
    assert template["active"] == "yes"

    updated = client.put(f"/api/templates/{template_id}", json={"template_name": "Довідка", "template_type": "довідка"})
    assert updated.json()["template"]["template_name"] == "Довідка"
    assert updated.json()["template"]["description"] == "опис"

    assert client.delete(f"/api/templates/{template_id}").status_code == 204
    assert client.get("/api/templates").json()["templates"] == []
    assert db.load(tables.TEMPLATES)[0]["active"] == "no"
    actions = [log["action"] for log in db.load(tables.LOGS)]
    assert actions == ["CREATE_TEMPLATE", "UPDATE_TEMPLATE", "DELETE_TEMPLATE"]


def test_template_validation(client):
    assert client.post("/api/templates", json={"template_type": "x"}).status_code == 400
    assert client.post("/api/templates", json={"template_name": "x"}).status_code == 400
    assert client.get("/api/templates/77").status_code == 404


def test_upload_template_file(client, db, docx_factory):
    template_id = _create_template(client)

    first = _upload(client, template_id, docx_factory("{b} {a}"))
    assert first.status_code == 200
    assert first.json()["placeholders"] == ["a", "b"]
    first_name = first.json()["filename"]
    assert first_name.startswith(f"template_{template_id}_")

    second = _upload(client, template_id, docx_factory("{c}"))
    assert not os.path.exists(os.path.join(db.templates_dir, first_name))
    template = client.get(f"/api/templates/{template_id}").json()["template"]
    assert template["docx_filename"] == second.json()["filename"]
    assert template["placeholder_fields"] == "c"

    assert _upload(client, template_id, b"not a docx", filename="t.pdf").status_code == 400
    assert _upload(client, template_id, b"not a docx").status_code == 400


def test_reextract(client, db, docx_factory):
    template_id = _create_template(client)
    filename = _upload(client, template_id, docx_factory("{x}")).json()["filename"]
    with open(os.path.join(db.templates_dir, filename), "wb") as fh:
        fh.write(docx_factory("{y} {z}"))

    response = client.post(f"/api/templates/{template_id}/reextract")

    assert response.json() == {"placeholders": ["y", "z"]}


# -------------------------------------------------
# Generation and documents
# -------------------------------------------------

def test_generate_for_employee(client, db, make_employee, docx_factory):
    emp_id = make_employee(last_name="Петренко", first_name="Іван")["employee_id"]
    template_id = _create_template(client)
    _upload(client, template_id, docx_factory("{last_name_upper} {first_name} {unknown}|", split_runs=True))

    response = client.post(f"/api/templates/{template_id}/generate", json={"employee_id": emp_id})

    assert response.status_code == 200
    body = response.json()
    assert body["filename"].startswith(f"Наказ_Петренко_{emp_id}_")
    assert body["download_url"] == f"/api/documents/{body['document_id']}/download"
    assert _texts(os.path.join(db.documents_dir, body["filename"])) == ["ПЕТРЕНКО Іван |"]

    row = db.load(tables.GENERATED_DOCUMENTS)[0]
    assert json.loads(row["data_snapshot"])["last_name"] == "Петренко"
    assert db.load(tables.LOGS)[-1]["action"] == "GENERATE_DOCUMENT"

    download = client.get(body["download_url"])
    assert download.status_code == 200
    assert download.headers["content-type"] == DOCX_TYPE


def test_generate_for_legacy_id_stays_in_documents_dir(client, db, docx_factory):
    with db.locked(tables.EMPLOYEES) as employees:
        employees.append({"employee_id": "a/../../b", "first_name": "Олег", "last_name": "Гнатюк"})
    template_id = _create_template(client)
    _upload(client, template_id, docx_factory("{last_name}"))

    response = client.post(f"/api/templates/{template_id}/generate", json={"employee_id": "a/../../b"})

    assert response.status_code == 200
    filename = response.json()["filename"]
    assert filename.startswith("Наказ_Гнатюк_a_______b_")
    assert os.listdir(db.documents_dir) == [filename]
    download = client.get(response.json()["download_url"])
    assert download.status_code == 200


def test_generate_rules(client, make_employee, docx_factory):
    template_id = _create_template(client)
    general_id = _create_template(client, name="Звіт", is_general="yes")

    assert client.post(f"/api/templates/{template_id}/generate", json={}).status_code == 400
    emp_id = make_employee()["employee_id"]
    # no DOCX uploaded yet
    assert client.post(f"/api/templates/{template_id}/generate", json={"employee_id": emp_id}).status_code == 400
    _upload(client, template_id, docx_factory("{first_name}"))
    assert client.post(f"/api/templates/{template_id}/generate", json={"employee_id": "404"}).status_code == 404

    _upload(client, general_id, docx_factory("Всього: {f_gender_quantity}"))
    general = client.post(f"/api/templates/{general_id}/generate")
    assert general.status_code == 200
    assert general.json()["filename"].startswith("Звіт_")


def test_documents_list_filters(client, db, make_employee, docx_factory):
    emp_a = make_employee(last_name="Андрієнко")["employee_id"]
    emp_b = make_employee(last_name="Бондар")["employee_id"]
    template_id = _create_template(client)
    _upload(client, template_id, docx_factory("{last_name}"))
    for emp_id in (emp_a, emp_b):
        client.post(f"/api/templates/{template_id}/generate", json={"employee_id": emp_id})

    everything = client.get("/api/documents").json()
    assert everything["total"] == 2
    assert everything["documents"][0]["template_name"] == "Наказ"

    only_b = client.get("/api/documents", params={"employee_id": emp_b}).json()
    assert [d["employee_name"] for d in only_b["documents"]] == ["Бондар Іван"]

    today = datetime.now().date().isoformat()
    assert client.get("/api/documents", params={"start_date": today, "end_date": today}).json()["total"] == 2
    assert client.get("/api/documents", params={"end_date": "2000-01-01"}).json()["total"] == 0
    assert client.get("/api/documents", params={"start_date": "bad"}).status_code == 400
    assert client.get("/api/documents/999/download").status_code == 404


def test_placeholder_preview(client, make_employee):
    assert client.get("/api/placeholder-preview").status_code == 404

    emp_id = make_employee(last_name="коваль")["employee_id"]
    data = client.get(f"/api/placeholder-preview/{emp_id}").json()

    by_key = {p["placeholder"]: p for p in data["placeholders"]}
    assert by_key["{last_name}"]["value"] == "коваль"
    assert by_key["{last_name_cap}"]["value"] == "Коваль"
    assert by_key["{current_date}"]["group"] == "special"
    assert by_key["{present_quantity}"]["group"] == "quantity"
    assert client.get("/api/placeholder-preview/404").status_code == 404
