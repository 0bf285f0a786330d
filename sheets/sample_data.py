"""
Built-in sample sheet, served whenever the live spreadsheet is unavailable.
The first data row is the reference employee.
"""

from models.assessment_models import Table

SAMPLE_HEADER = (
    "Timestamp", "Score", "Full Name", "Employee ID", "Date of Birth", "Department",
    "1. Which law states that stress is proportional to strain within the elastic limit?",
    "2. Which type of gear is used to transmit motion between intersecting shafts?",
    "3. Which cycle is used in IC engines?",
    "4. Unit of Power is?",
    "5. The hardness test performed using diamond pyramid is called?",
    "6. Which of the following is NOT a welding process?",
    "7. In thermodynamics, the SI unit of entropy is?",
    "8. Which metal is commonly used in aircraft manufacturing?",
    "9. Which of the following is a non-destructive testing method?",
    "10. The process of cooling a material rapidly to increase hardness is?",
)

SAMPLE_ROWS = (
    ("8/16/2025 14:10:59", "10 / 10", "Shubham Kumar", "123", "12/2/1995", "IT",
     "Hooke's Law", "Bevel Gear", "Otto Cycle", "Watt", "Vickers",
     "CNC", "J/K", "Aluminium", "X-Ray Inspection", "Quenching"),
    ("8/16/2025 19:07:21", "8 / 10", "Rajesh Sharma", "456", "13/02/1990", "Mechanical",
     "Hooke's Law", "Bevel Gear", "Otto Cycle", "Watt", "Mohs",
     "CNC", "J/K", "Copper", "X-Ray Inspection", "Quenching"),
    ("8/17/2025 10:15:30", "4 / 10", "Priya Singh", "789", "25/05/1992", "Electrical",
     "Pascal's Law", "Bevel Gear", "Carnot Cycle", "Watt", "Vickers",
     "TIG", "W", "Aluminium", "Bend Test", "Normalizing"),
)

SAMPLE_TABLE: Table = (SAMPLE_HEADER,) + SAMPLE_ROWS
