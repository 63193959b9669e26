
#backend/app/models/evaluation_schemas.py

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class UploadType(str, Enum):
    CV = "cv"
    PROJECT = "project"


class ReferenceDocumentType(str, Enum):
    SCORING_RUBRIC = "scoring_rubric"
    JOB_DESCRIPTION = "job_description"
    CASE_STUDY_BRIEF = "case_study_brief"


class EvaluationType(str, Enum):
    CV = "cv"
    PROJECT = "project"
    OVERALL = "overall"


# ---------------- CV ----------------
class Profile(BaseModel):
    name: Optional[str] = Field(default=None, description="The full name of the candidate")
    email: Optional[str] = Field(default=None, description="The email address of the candidate")
    phone: Optional[str] = Field(default=None, description="The phone number of the candidate")
    linkedin: Optional[str] = Field(default=None, description="The LinkedIn profile URL of the candidate")
    summary: Optional[str] = Field(default=None, description="A brief summary or objective statement of the candidate")


class Experience(BaseModel):
    role: Optional[str] = Field(default=None, description="The job title or role held by the candidate")
    employment_type: Optional[str] = Field(
        default=None, description="Full-time, Part-time, Contract, Internship or Temporary"
    )
    company: Optional[str] = Field(default=None, description="The name of the company or organization")
    industry: Optional[str] = Field(default=None, description="The industry sector of the company")
    location: Optional[str] = Field(default=None, description="The location of the job (city, country)")
    description: Optional[str] = Field(default=None, description="A brief description of the role and responsibilities")
    start_date: Optional[str] = Field(default=None, description="The start date of the employment (YYYY-MM)")
    end_date: Optional[str] = Field(default=None, description='The end date (YYYY-MM), or "Present"')


class Education(BaseModel):
    degree: Optional[str] = Field(default=None, description="The degree or qualification obtained")
    field_of_study: Optional[str] = Field(default=None, description="The field of study or major")
    institution: Optional[str] = Field(default=None, description="The name of the educational institution")
    location: Optional[str] = Field(default=None, description="The location of the institution (city, country)")
    start_date: Optional[str] = Field(default=None, description="The start date of the education (YYYY-MM)")
    end_date: Optional[str] = Field(default=None, description="The end date of the education (YYYY-MM)")


class CurriculumVitae(BaseModel):
    profile: Profile = Field(default_factory=Profile, description="The personal profile of the candidate")
    experiences: List[Experience] = Field(default_factory=list, description="A list of professional experiences")
    education: List[Education] = Field(default_factory=list, description="A list of educational qualifications")
    skills: List[str] = Field(default_factory=list, description="A list of relevant skills and competencies")
    languages: List[str] = Field(default_factory=list, description="A list of languages spoken by the candidate")


# ---------------- Project report ----------------
class Candidate(BaseModel):
    name: Optional[str] = Field(default=None, description="The full name of the candidate")
    email: Optional[str] = Field(default=None, description="The email address of the candidate")


class TitledEntry(BaseModel):
    title: Optional[str] = Field(default=None, description="Short title")
    description: Optional[str] = Field(default=None, description="A brief description")


class ProjectReport(BaseModel):
    project_title: Optional[str] = Field(default=None, description="The title of the project")
    candidate: Candidate = Field(default_factory=Candidate, description="Information about the candidate")
    github_repository: Optional[str] = Field(default=None, description="Link to the GitHub repository")
    approaches: List[TitledEntry] = Field(
        default_factory=list, description="Information about the project approaches and designs"
    )
    results: List[TitledEntry] = Field(
        default_factory=list, description="Information about the project results and reflections"
    )
    real_responses: List[str] = Field(
        default_factory=list, description="The actual responses provided by the candidate, quoted literally"
    )
    bonus_works: Optional[str] = Field(default=None, description="Description of any additional bonus work")


# ---------------- Scoring ----------------
class CriteriaScore(BaseModel):
    criteria: str = Field(..., description="The name of the criteria")
    reason: str = Field(..., description="The reason for the given score, citing evidence")
    weight: float = Field(..., ge=0.0, le=1.0, description="The weight of the criteria between 0 and 1")
    score: float = Field(..., description="The score of the criteria according to the rubric scale")
    weighted_score: float = Field(..., description="weight * score")


class CriteriaEvaluation(BaseModel):
    criterias: List[CriteriaScore] = Field(default_factory=list, description="List of evaluation criterias")

    def weight_total(self) -> float:
        return sum(c.weight for c in self.criterias)

    def weighted_total(self) -> float:
        return sum(c.weighted_score for c in self.criterias)


class OverallEvaluation(BaseModel):
    cv_match_rate: float = Field(..., description="CV match rate on the overall rubric's scale")
    cv_feedback: str = Field(..., description="Feedback on the CV")
    cv_calculation_detail: str = Field(..., description="How cv_match_rate was calculated")
    project_score: float = Field(..., description="Project score on the overall rubric's scale")
    project_feedback: str = Field(..., description="Feedback on the project report")
    project_calculation_detail: str = Field(..., description="How project_score was calculated")
    overall_summary: str = Field(..., description="3-5 sentence summary of the candidate")
