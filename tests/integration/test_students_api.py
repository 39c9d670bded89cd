"""
Integration tests for the student directory: paged list, email search and stats
"""

from datetime import datetime

import pytest
from fastapi import status

from models import ExerciseRecord, Student, Teacher, teacher_students


@pytest.fixture
def linked_students(test_db, teacher):
    """Twenty students linked to the teacher plus one that belongs to somebody else"""
    students = []
    for i in range(20):
        curso = "1º ESO" if i % 2 == 0 else "2º ESO"
        students.append(
            Student(
                email=f"alumno{i:02d}@alumnos.es",
                nombre=f"Alumno{i:02d}",
                apellidos="Martínez" if i < 3 else "López",
                genero="M",
                curso=curso,
            )
        )
    other = Student(email="ajeno@alumnos.es", nombre="Ajeno", apellidos="Martínez", genero="F", curso="1º ESO")
    test_db.add_all(students + [other])
    test_db.commit()

    test_db.execute(
        teacher_students.insert(),
        [{"id_profesor": teacher.id_profesor, "id_alumno": s.id_alumno} for s in students],
    )
    test_db.commit()
    return students


class TestStudentList:
    def test_first_page(self, client, teacher_headers, linked_students):
        response = client.get("/alumnos/", headers=teacher_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["totalPages"] == 2
        assert len(data["alumnos"]) == 16
        assert data["alumnos"][0]["id_alumno"] == linked_students[0].id_alumno

    def test_second_page(self, client, teacher_headers, linked_students):
        response = client.get("/alumnos/?page=2&page_size=16", headers=teacher_headers)

        assert [s["email"] for s in response.json()["alumnos"]] == [f"alumno{i:02d}@alumnos.es" for i in range(16, 20)]

    def test_only_linked_students_are_listed(self, client, teacher_headers, linked_students):
        emails = {s["email"] for s in client.get("/alumnos/?page_size=100", headers=teacher_headers).json()["alumnos"]}

        assert "ajeno@alumnos.es" not in emails

    def test_filter_is_case_insensitive(self, client, teacher_headers, linked_students):
        response = client.get("/alumnos/?filter_by=apellidos&query=MARTÍ", headers=teacher_headers)

        data = response.json()
        assert len(data["alumnos"]) == 3
        assert data["totalPages"] == 1

    def test_filter_by_course(self, client, teacher_headers, linked_students):
        response = client.get("/alumnos/?filter_by=curso&query=2º&page_size=100", headers=teacher_headers)

        assert len(response.json()["alumnos"]) == 10

    def test_invalid_filter_field(self, client, teacher_headers, linked_students):
        response = client.get("/alumnos/?filter_by=password&query=x", headers=teacher_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Invalid filter field"

    def test_teacher_without_students(self, client, make_headers, test_db):
        other = Teacher(email="otro@colegio.es", nombre="Otro", apellidos="Profe", password="x")
        test_db.add(other)
        test_db.commit()

        response = client.get("/alumnos/", headers=make_headers(other.id_profesor, "profesor"))

        assert response.json() == {"alumnos": [], "totalPages": 0}

    def test_requires_token(self, client):
        assert client.get("/alumnos/").status_code == status.HTTP_401_UNAUTHORIZED


class TestStudentSearch:
    def test_search_covers_all_students(self, client, teacher_headers, linked_students):
        response = client.get("/alumnos/add-alumnos/buscar?email=AJENO", headers=teacher_headers)

        assert response.status_code == status.HTTP_200_OK
        assert [s["email"] for s in response.json()["alumnos"]] == ["ajeno@alumnos.es"]

    def test_empty_email_returns_nothing(self, client, teacher_headers, linked_students):
        response = client.get("/alumnos/add-alumnos/buscar?email=", headers=teacher_headers)

        assert response.json() == {"alumnos": []}


class TestStudentStats:
    def test_rows_per_exercise_in_date_order(self, client, teacher_headers, test_db):
        student = Student(email="marta@alumnos.es", nombre="Marta", apellidos="Gil", genero="F", curso="3º ESO")
        student.exercises = [
            ExerciseRecord(
                aciertos=5,
                fallos=1,
                letras_correctas=0,
                date_inicio=datetime(2025, 3, 2, 9, 0),
                date_fin=datetime(2025, 3, 2, 9, 4),
                dificultad="Difícil",
                tipo_ejercicio="matchFigures",
            ),
            ExerciseRecord(
                aciertos=9,
                fallos=0,
                letras_correctas=0,
                date_inicio=datetime(2025, 3, 1, 9, 0),
                date_fin=datetime(2025, 3, 1, 9, 3),
                dificultad="Fácil",
                tipo_ejercicio="memoriseNumber",
            ),
        ]
        test_db.add(student)
        test_db.commit()

        response = client.get(f"/alumnos/{student.id_alumno}", headers=teacher_headers)

        assert response.status_code == status.HTTP_200_OK
        rows = response.json()
        assert [row["aciertos"] for row in rows] == [9, 5]
        assert all(row["nombre"] == "Marta" for row in rows)

    def test_student_without_exercises(self, client, teacher_headers, test_db):
        student = Student(email="leo@alumnos.es", nombre="Leo", apellidos="Sanz", genero="M", curso="1º ESO")
        test_db.add(student)
        test_db.commit()

        rows = client.get(f"/alumnos/{student.id_alumno}", headers=teacher_headers).json()

        assert len(rows) == 1
        assert rows[0]["id_ejercicio"] is None
        assert rows[0]["aciertos"] is None

    def test_unknown_student(self, client, teacher_headers):
        response = client.get("/alumnos/98765", headers=teacher_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Student not found"
