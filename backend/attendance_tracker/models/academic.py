"""Academic structure: departments, courses, units and enrollments."""
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel

class Department(BaseModel):
    """Academic department."""
    
    __tablename__ = 'departments'
    
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False)
    
    courses = db.relationship('Course', backref='department', lazy='dynamic')

class Course(BaseModel):
    """Degree programme offered by a department."""
    
    __tablename__ = 'courses'
    
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id'), nullable=False)
    
    units = db.relationship('Unit', backref='course', lazy='dynamic')

class Unit(BaseModel):
    """A taught unit; the thing lecture sessions are held for."""
    
    __tablename__ = 'units'
    
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    semester = db.Column(db.Integer, nullable=False)
    lecturer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    
    lecturer = db.relationship('User', foreign_keys=[lecturer_id])
    
    def __repr__(self) -> str:
        return f'<Unit {self.code}>'

class Enrollment(BaseModel):
    """Student enrollment in a unit of a course."""
    
    __tablename__ = 'enrollments'
    __table_args__ = (
        db.UniqueConstraint('student_id', 'unit_id', 'course_id', name='uq_enrollment_student_unit_course'),
    )
    
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    valid_from = db.Column(db.DateTime, nullable=True)
    valid_to = db.Column(db.DateTime, nullable=True)
    
    def is_valid_at(self, now) -> bool:
        """Open-ended bounds always match."""
        if self.valid_from is not None and now < self.valid_from:
            return False
        if self.valid_to is not None and now > self.valid_to:
            return False
        return True
