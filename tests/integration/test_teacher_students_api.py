"""
Integration tests for adding and removing students from a teacher's list
"""

import pytest
from fastapi import status

from models import Student, teacher_students


@pytest.fixture
def student(test_db):
    student = Student(email="hugo@alumnos.es", nombre="Hugo", apellidos="Vidal", genero="M", curso="5º Primaria")
    test_db.add(student)
    test_db.commit()
    return student


def unlink(client, id_alumno, headers):
    return client.request("DELETE", "/profesor-alumno", json={"id_alumno": id_alumno}, headers=headers)


class TestLinkStudent:
    def test_link(self, client, teacher, teacher_headers, student, test_db):
        response = client.post("/profesor-alumno", json={"id_alumno": student.id_alumno}, headers=teacher_headers)

        assert response.status_code == status.HTTP_201_CREATED
        links = test_db.execute(teacher_students.select()).fetchall()
        assert [(row.id_profesor, row.id_alumno) for row in links] == [(teacher.id_profesor, student.id_alumno)]

    def test_link_twice_conflicts(self, client, teacher_headers, student):
        client.post("/profesor-alumno", json={"id_alumno": student.id_alumno}, headers=teacher_headers)

        response = client.post("/profesor-alumno", json={"id_alumno": student.id_alumno}, headers=teacher_headers)

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_unknown_student(self, client, teacher_headers):
        response = client.post("/profesor-alumno", json={"id_alumno": 777}, headers=teacher_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.parametrize("body", [{}, {"id_alumno": "abc"}, {"id_alumno": 0}])
    def test_bad_body(self, client, teacher_headers, body):
        response = client.post("/profesor-alumno", json=body, headers=teacher_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestUnlinkStudent:
    def test_unlink(self, client, teacher_headers, student, test_db):
        client.post("/profesor-alumno", json={"id_alumno": student.id_alumno}, headers=teacher_headers)

        response = unlink(client, student.id_alumno, teacher_headers)

        assert response.status_code == status.HTTP_200_OK
        assert test_db.execute(teacher_students.select()).fetchall() == []

    def test_unlink_missing_link(self, client, teacher_headers, student):
        response = unlink(client, student.id_alumno, teacher_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Link not found"
