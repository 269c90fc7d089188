"""
Management command to list the AI skills found in the skills directory.

Usage:
    python manage.py list_skills
"""

from django.core.management.base import BaseCommand

from content_pipeline.services.skill_store import FileSkillRepository


class Command(BaseCommand):
    help = "List available AI skills"

    def handle(self, *args, **options):
        repository = FileSkillRepository()
        skills = repository.find_all()

        if not skills:
            self.stdout.write(self.style.WARNING(f"No skills found in {repository.skills_dir}"))
            return

        self.stdout.write(f"Skills in {repository.skills_dir} ({len(skills)}):")
        for skill in skills:
            self.stdout.write(
                f"  {skill.name} v{skill.version} "
                f"[model={skill.model}, temperature={skill.temperature}]"
            )
            if skill.description:
                self.stdout.write(f"      {skill.description}")
