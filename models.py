from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy import Table
from sqlalchemy.orm import declarative_base, relationship
import enum

Base = declarative_base()


class UserRole(str, enum.Enum):
    TEACHER = "profesor"
    ADMIN = "admin"


class Difficulty(str, enum.Enum):
    EASY = "Fácil"
    NORMAL = "Normal"
    HARD = "Difícil"


class ExerciseType(str, enum.Enum):
    SHIFT = "ejercicioDesplazamiento"
    MEMORISE_NUMBER = "memoriseNumber"
    MATCH_FIGURES = "matchFigures"
    LETTERS = "ejercicioLetras"
    ARITHMETIC = "operacionesMatematicas"
    EQUAL_NUMBERS = "ejercicioNumerosIguales"


# Course labels are free text; these are the values the frontend offers
KNOWN_COURSES = ["3 ano", "1º", "2º ESO", "1", "Fundamental", ""]


teacher_students = Table(
    "profesor_alumno",
    Base.metadata,
    Column("id_profesor", Integer, ForeignKey("profesores.id_profesor", ondelete="CASCADE"), primary_key=True),
    Column("id_alumno", Integer, ForeignKey("alumnos.id_alumno", ondelete="CASCADE"), primary_key=True),
)


class Student(Base):
    __tablename__ = "alumnos"

    id_alumno = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, nullable=False)
    nombre = Column(String(50), nullable=False)
    apellidos = Column(String(100), nullable=False)
    genero = Column(String(10), nullable=True)
    curso = Column(String(20), nullable=True)

    exercises = relationship("ExerciseRecord", back_populates="student", cascade="all, delete-orphan")
    teachers = relationship("Teacher", secondary=teacher_students, back_populates="students")


class ExerciseRecord(Base):
    __tablename__ = "ejercicios"

    id_ejercicio = Column(Integer, primary_key=True, index=True)
    id_alumno = Column(Integer, ForeignKey("alumnos.id_alumno"), nullable=False, index=True)
    aciertos = Column(Integer, nullable=False)
    fallos = Column(Integer, nullable=False)
    letras_correctas = Column(Integer, nullable=False)
    date_inicio = Column(DateTime, nullable=False)
    date_fin = Column(DateTime, nullable=False)
    dificultad = Column(String(50), nullable=False)  # Difficulty value
    tipo_ejercicio = Column(String(50), nullable=False)  # ExerciseType value

    student = relationship("Student", back_populates="exercises")


class Teacher(Base):
    __tablename__ = "profesores"

    id_profesor = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, nullable=False)
    nombre = Column(String(50), nullable=False)
    apellidos = Column(String(100), nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    puede_gestionar_alumnos = Column(Boolean, default=False, nullable=False)

    students = relationship("Student", secondary=teacher_students, back_populates="teachers")


class Admin(Base):
    __tablename__ = "admins"

    id_admin = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, nullable=False)
    nombre = Column(String(50), nullable=False)
    apellidos = Column(String(100), nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
