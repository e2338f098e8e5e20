"""Shared fixtures: sample records, an in-memory record store and a temp database."""

import asyncio
import copy

import pytest

import database


SAMPLE_LEADS = [
    {
        "ID": "L-1",
        "Name": "Carlos Ruiz",
        "Phone": "+34 600 000 003",
        "Country": "Colombia",
        "Interest": "Setter High Ticket",
        "Registered_Date": "2024-05-14",
        "Registered_Time": "09:00",
        "Status": "Contactado",
        "Qualifies": "si",
        "Cash_Collected": "1500",
    },
    {
        "ID": "L-2",
        "Name": "Elena Torres",
        "Phone": "+34 600 000 004",
        "Country": "España",
        "Interest": "Setter High Ticket",
        "Registered_Date": "2024-05-14",
        "Registered_Time": "14:20",
        "Status": "Formulario completo",
        "Qualifies": "no",
        "Cash_Collected": "",
    },
    {
        "ID": "L-3",
        "Name": "Juan Pérez",
        "Phone": "+34 600 000 001",
        "Country": "España",
        "Interest": "Cerrador de Ventas",
        "Registered_Date": "2024-05-15",
        "Registered_Time": "10:30",
        "Status": "Formulario completo",
        "Qualifies": "SI ",
        "Cash_Collected": "300,50",
    },
    {
        "ID": "L-4",
        "Name": "Maria García",
        "Phone": "+52 55 0000 0002",
        "Country": "",
        "Interest": "Cerrador de Ventas",
        "Registered_Date": "2024-05-16",
        "Registered_Time": "",
        "Status": "",
        "Qualifies": "",
        "Cash_Collected": "n/a",
    },
]

SAMPLE_STUDENTS = [
    {
        "ID": "S-1",
        "First_Name": "Lucía",
        "Last_Name": "Méndez",
        "Phone": "+56 9 0000 0006",
        "Email": "lucia@example.com",
        "Country": "Chile",
        "Status": "Activo",
        "Total_Investment": "1200",
        "Pending_Amount": "0",
        "Purchase_Date": "2024-04-02",
        "Course": "Setter",
    },
    {
        "ID": "S-2",
        "First_Name": "Roberto",
        "Last_Name": "Gómez",
        "Phone": "+54 11 0000 0005",
        "Email": "roberto@example.com",
        "Country": "Argentina",
        "Status": "Pendiente",
        "Total_Investment": "800",
        "Pending_Amount": "400",
        "Purchase_Date": "2024-05-20",
        "Course": "Closer",
    },
    {
        "ID": "S-3",
        "First_Name": "Fernando",
        "Last_Name": "Soria",
        "Phone": "+34 600 000 007",
        "Email": "fernando@example.com",
        "Country": "España",
        "Status": "Pagado",
        "Total_Investment": "1500",
        "Pending_Amount": "0",
        "Purchase_Date": "",
        "Course": "Setter",
    },
]


class FakeRecordStore:
    """In-memory stand-in for the Google Sheets record store."""

    def __init__(self, leads=None, students=None):
        self.leads = copy.deepcopy(SAMPLE_LEADS if leads is None else leads)
        self.students = copy.deepcopy(SAMPLE_STUDENTS if students is None else students)
        self.list_calls = 0
        self.updates = []

    async def list_leads(self):
        self.list_calls += 1
        return copy.deepcopy(self.leads)

    async def update_lead(self, lead_id, updates):
        self.updates.append((lead_id, updates))
        for lead in self.leads:
            if lead["ID"] == lead_id:
                lead.update(updates)
                return True
        return False

    async def list_students(self):
        return copy.deepcopy(self.students)

    async def update_student(self, student_id, updates):
        for student in self.students:
            if student["ID"] == student_id:
                student.update(updates)
                return True
        return False


@pytest.fixture()
def leads():
    return copy.deepcopy(SAMPLE_LEADS)


@pytest.fixture()
def students():
    return copy.deepcopy(SAMPLE_STUDENTS)


@pytest.fixture()
def fake_store():
    return FakeRecordStore()


@pytest.fixture()
def tmp_db(tmp_path, monkeypatch):
    """A fresh SQLite database for each test."""
    monkeypatch.setattr(database, "DATABASE_PATH", tmp_path / "test.db")
    asyncio.run(database.init_database())
    return tmp_path / "test.db"
