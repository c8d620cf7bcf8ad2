"""
Institute Back-Office - Test Configuration and Fixtures
"""
import os
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Generator

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['LOG_FORMAT'] = 'text'
os.environ['LOG_LEVEL'] = 'WARNING'
os.environ['EMAIL_ENABLED'] = 'false'
os.environ['UPLOAD_DIR'] = './test-uploads'

from backoffice.main import app
from backoffice.db.base import Base, import_models
from backoffice.db.session import get_db
from backoffice.core.security import PasswordManager, TokenManager
from backoffice.models import Batch, Course, Student, User
from backoffice.models.base.enums import UserRole, UserStatus
from backoffice.services.common.permissions import Principal

fake = Faker()

# Test database setup
test_engine = create_engine(
    'sqlite://',
    connect_args={'check_same_thread': False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)

import_models()


def fake_phone() -> str:
    """Ten digit mobile number accepted by the phone pattern"""
    return f"9{fake.numerify('#########')}"


@pytest.fixture(scope='function')
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create test client with database override"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory for persisted users of any role"""
    def _make(role: UserRole = UserRole.EMPLOYEE, status: UserStatus = UserStatus.ACTIVE) -> User:
        user = User(
            username=fake.unique.user_name(),
            email=fake.unique.email(),
            password_hash=PasswordManager.hash_password('testpassword123'),
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            role=role,
            status=status,
            profile={},
            permissions=[],
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def admin_user(make_user) -> User:
    """Create an admin test user"""
    return make_user(UserRole.ADMIN)


@pytest.fixture
def employee_user(make_user) -> User:
    """Create an employee test user"""
    return make_user(UserRole.EMPLOYEE)


@pytest.fixture
def student_user(make_user) -> User:
    """Create a student-role test user"""
    return make_user(UserRole.STUDENT)


def headers_for(user: User) -> dict:
    token = TokenManager.create_token(str(user.id), role=user.role.value)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def auth_headers_for() -> Callable[[User], dict]:
    """Header factory for users created inside a test"""
    return headers_for


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    """Generate authentication headers for admin user"""
    return headers_for(admin_user)


@pytest.fixture
def employee_headers(employee_user: User) -> dict:
    """Generate authentication headers for employee user"""
    return headers_for(employee_user)


@pytest.fixture
def student_headers(student_user: User) -> dict:
    """Generate authentication headers for student-role user"""
    return headers_for(student_user)


@pytest.fixture
def admin(admin_user: User) -> Principal:
    """Service-layer principal for the admin user"""
    return Principal(user_id=admin_user.id, role=UserRole.ADMIN)


@pytest.fixture
def counselor(make_user) -> Principal:
    user = make_user(UserRole.COUNSELOR)
    return Principal(user_id=user.id, role=UserRole.COUNSELOR)


@pytest.fixture
def student(db_session: Session) -> Student:
    """Create a student with a 10000 fee"""
    record = Student(
        student_id=f"STU{fake.unique.numerify('######')}",
        full_name=fake.name(),
        phone=fake_phone(),
        email=fake.unique.email(),
        total_fees=Decimal('10000'),
        paid_amount=Decimal('0'),
        pending_amount=Decimal('10000'),
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture
def course(db_session: Session) -> Course:
    """Create an active course"""
    record = Course(
        course_code=f"PYT{fake.unique.numerify('####')}",
        name='Python Programming',
        category='Programming',
        regular_fee=Decimal('10000'),
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture
def make_batch(db_session: Session, course: Course) -> Callable[..., Batch]:
    """Factory for batches of the course fixture"""
    def _make(max_students: int = 30) -> Batch:
        start = date.today()
        record = Batch(
            batch_id=f"PYT-B{fake.unique.numerify('###')}",
            course_id=course.id,
            name=f"Batch {fake.word()}",
            start_date=start,
            end_date=start + timedelta(days=90),
            max_students=max_students,
            current_students=0,
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make
