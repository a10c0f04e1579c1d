# Services package init
"""
StackIt Backend — Services Layer
=================================

What:  Business logic between routes (HTTP) and the database.
How:   Module-level singletons; every method takes the request's AsyncSession
       explicitly, so the same service works from routes, tests or scripts.

Service Inventory:
    - VoteLedger (question_ledger, answer_ledger): two-set vote bookkeeping
    - QuestionService: question CRUD, view counting, question votes
    - AnswerService: answer CRUD, comments, answer votes, acceptance rule
    - NotificationService: event dispatch and recipient-only read state
    - TagService: tag find-or-create and usage counters
    - UserService: registration and profiles
"""
